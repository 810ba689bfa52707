# glossary_bot/transport.py

from typing import Any, Callable, Dict, Optional, Protocol

from sqlalchemy.orm import Session

from glossary_bot.entities import QueueMessage
from glossary_bot.models import Room, Sender


SEND_TEXT = "send_text"


class Transport(Protocol):
    def send_text(self, room: Room, text: str) -> None:
        ...


class UserReader(Protocol):
    def get_app_user(self) -> Optional[Sender]:
        ...


class StaticUserReader:
    """
    Bot identity taken from configuration (BOT_USER_ID / BOT_USERNAME).
    An empty id means "unknown", which makes the dispatcher ignore everything.
    """

    def __init__(self, user_id: Optional[str], username: Optional[str] = None):
        self.user_id = user_id
        self.username = username

    def get_app_user(self) -> Optional[Sender]:
        if not self.user_id:
            return None
        return Sender(id=str(self.user_id), username=self.username)


class QueueTransport:
    """
    Outbound replies become queue rows addressed to the room id; the HTTP
    surface (or any other consumer) drains them.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        sender_id: str,
        extra_payload: Optional[Dict[str, Any]] = None,
    ):
        self.SessionFactory = session_factory
        self.sender_id = sender_id
        self.extra_payload = dict(extra_payload or {})

    def send_text(self, room: Room, text: str) -> None:
        payload = dict(self.extra_payload)
        payload.update({"room_id": room.id, "text": text})

        session = self.SessionFactory()
        try:
            session.add(
                QueueMessage(
                    sender_id=str(self.sender_id),
                    receiver_id=str(room.id),
                    type=SEND_TEXT,
                    payload=payload,
                )
            )
            session.commit()
        finally:
            session.close()
