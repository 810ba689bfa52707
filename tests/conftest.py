from __future__ import annotations

import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Make package importable when running tests from repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from glossary_bot.dispatcher import GlossaryDispatcher  # noqa: E402
from glossary_bot.entities import Base  # noqa: E402
from glossary_bot.glossary_store import GlossaryStore  # noqa: E402
from glossary_bot.models import PostedMessage, Room, Sender  # noqa: E402
from glossary_bot.persistence import InMemoryPersistence  # noqa: E402
from glossary_bot.transport import StaticUserReader  # noqa: E402

BOT_ID = "bot-1"
FIXED_TS = "2024-03-05T14:30:00+00:00"


class RecordingTransport:
    def __init__(self):
        self.sent = []

    def send_text(self, room, text):
        self.sent.append((room.id, text))


class FailingTransport:
    def send_text(self, room, text):
        raise ConnectionError("host unreachable")


def make_message(text, sender_id="user-1", kind="d", room_id="room-1", **sender_fields):
    sender = Sender(id=sender_id, **sender_fields)
    return PostedMessage(id="m-1", text=text, sender=sender, room=Room(id=room_id, kind=kind))


@pytest.fixture
def persistence():
    return InMemoryPersistence()


@pytest.fixture
def store(persistence):
    return GlossaryStore(persistence, clock=lambda: FIXED_TS)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def dispatcher(store, transport):
    return GlossaryDispatcher(store, transport, StaticUserReader(BOT_ID, "glossary-bot"))


@pytest.fixture
def session_factory(tmp_path):
    # file backed so worker threads each get their own connection
    engine = create_engine(
        f"sqlite:///{tmp_path / 'glossary.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False)
    yield factory
    engine.dispose()
