import os
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from dotenv import load_dotenv

from glossary_bot.entities import QueueMessage
from glossary_bot.GCConnection_hlpr import GCConnection
from glossary_bot.transport import SEND_TEXT

load_dotenv()

logger = logging.getLogger("glossary_bot")

QUEUE_RECEIVER_ID = os.getenv("QUEUE_RECEIVER_ID", "glossary_worker")
APP_PREFIX = "glossary::"
MESSAGE_POSTED = "message_posted"

app = FastAPI()

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for dev
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_session_factory: Optional[Callable[[], Session]] = None


def get_session_factory() -> Callable[[], Session]:
    global _session_factory
    if _session_factory is None:
        _session_factory = GCConnection().build_db_session_factory()
    return _session_factory


class EmailModel(BaseModel):
    address: str
    verified: bool = False


class SenderModel(BaseModel):
    id: str
    username: Optional[str] = None
    name: Optional[str] = None
    emails: List[EmailModel] = Field(default_factory=list)


class RoomModel(BaseModel):
    id: str
    kind: str


class InboundMessage(BaseModel):
    id: Optional[str] = None
    text: Optional[str] = None
    sender: SenderModel
    room: RoomModel


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/messages")
async def post_message(message: InboundMessage, session_factory=Depends(get_session_factory)):
    session = session_factory()
    try:
        row = QueueMessage(
            sender_id=f"{APP_PREFIX}{message.room.id}",
            receiver_id=QUEUE_RECEIVER_ID,
            type=MESSAGE_POSTED,
            payload=message.model_dump(),
        )
        session.add(row)
        session.commit()
        return {"status": "success", "id": row.id}
    except Exception as e:
        session.rollback()
        logger.error("Error enqueueing message for room=%s: %s", message.room.id, e)
        raise HTTPException(status_code=500, detail="Could not enqueue message")
    finally:
        session.close()


@app.get("/messages/{room_id}/replies")
async def get_replies(room_id: str, session_factory=Depends(get_session_factory)):
    """
    Drains pending replies for a room (oldest first). Each reply is returned once.
    """
    session = session_factory()
    try:
        rows = (
            session.query(QueueMessage)
            .filter(QueueMessage.receiver_id == room_id, QueueMessage.type == SEND_TEXT)
            .order_by(QueueMessage.created_at.asc())
            .all()
        )
        replies: List[Dict[str, Any]] = [dict(r.payload or {}) for r in rows]
        for r in rows:
            session.delete(r)
        session.commit()
        return replies
    except Exception as e:
        session.rollback()
        logger.error("Error reading replies for room=%s: %s", room_id, e)
        raise HTTPException(status_code=500, detail="Could not read replies")
    finally:
        session.close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
