import logging
import os
from typing import Callable, Optional

from google.cloud import secretmanager
from google.oauth2 import service_account
from google.auth import default as google_auth_default

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from dotenv import load_dotenv

from glossary_bot.entities import Base

load_dotenv()

logger = logging.getLogger("glossary_bot")

LOCAL_SQLITE_URL = "sqlite:///glossary.db"


class GCConnection:
    def __init__(self, database_url: Optional[str] = None) -> None:
        # ---- env config (shared) ----
        self.PROJECT_ID   = os.getenv("GOOGLE_CLOUD_PROJECT", "")
        self.DB_HOST      = os.getenv("DB_HOST", "localhost")
        self.DB_PORT      = int(os.getenv("DB_PORT", "5432"))
        self.DB_NAME      = os.getenv("DB_NAME", "")
        self.DB_USER      = os.getenv("DB_USER", "")
        self.DB_PASSWORD  = os.getenv("DB_PASSWORD", "")
        self.DB_SECRET_ID = os.getenv("DB_SECRET_ID", "")

        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

        # !###############################################
        # !   EXPLICIT URL WINS, THEN LOCAL SQLITE WHEN
        # !   DB_HOST IS localhost, ELSE POSTGRES (pg8000)
        # !###############################################
        self.DATABASE_URL = database_url or os.getenv("DATABASE_URL", "")
        if not self.DATABASE_URL:
            if self.DB_HOST == "localhost":
                self.DATABASE_URL = LOCAL_SQLITE_URL
            else:
                self.DATABASE_URL = (
                    f"postgresql+pg8000://{self.DB_USER}:{self._get_db_password_lazy()}"
                    f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
                )

    # -------- GCP auth / creds --------
    def _build_creds(self):
        key_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
        scopes = ["https://www.googleapis.com/auth/cloud-platform"]
        if key_path and os.path.exists(key_path):
            return service_account.Credentials.from_service_account_file(key_path, scopes=scopes)
        creds, _ = google_auth_default(scopes=scopes)
        return creds

    # -------- DB password (Secret Manager) --------
    def _get_db_password_lazy(self) -> str:
        if self.DB_PASSWORD:
            return self.DB_PASSWORD
        if self.DB_SECRET_ID:
            client = secretmanager.SecretManagerServiceClient(credentials=self._build_creds())
            name = client.secret_version_path(self.PROJECT_ID, self.DB_SECRET_ID, "latest")
            resp = client.access_secret_version(request={"name": name})
            self.DB_PASSWORD = resp.payload.data.decode("utf-8")
            return self.DB_PASSWORD
        raise RuntimeError("No DB_PASSWORD and no Secret Manager configured")

    # -------- Engine --------
    def get_engine(self) -> Engine:
        if self._engine is None:
            if self.DATABASE_URL.startswith("sqlite"):
                logger.info("[DB] Using SQLite URL: %s", self.DATABASE_URL)
                self._engine = create_engine(
                    self.DATABASE_URL,
                    connect_args={"check_same_thread": False},
                )
            else:
                logger.info("[DB] Connecting to %s:%s/%s", self.DB_HOST, self.DB_PORT, self.DB_NAME)
                # pg8000 supports 'timeout' in seconds
                self._engine = create_engine(
                    self.DATABASE_URL,
                    pool_pre_ping=True,
                    connect_args={"timeout": 10},
                )
            Base.metadata.create_all(self._engine)
        return self._engine

    # -------- SQLAlchemy Session factory --------
    def build_db_session_factory(self) -> Callable[[], Session]:
        if self._sessionmaker is None:
            self._sessionmaker = sessionmaker(
                bind=self.get_engine(),
                autoflush=False,
                autocommit=False,
                future=True,
            )

        def _factory() -> Session:
            return self._sessionmaker()

        return _factory
