# glossary_bot/entities.py
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    JSON,
    String,
    func,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column


Base = declarative_base()


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class GlossaryRecord(Base, TimestampMixin):
    """
    One row per normalized key. The whole value list lives in `payload`
    ({"values": [{"value", "createdAt", "createdBy"}, ...]}) and is rewritten
    on every mutation.
    """
    __tablename__ = "glossary_entry"

    normalized_key: Mapped[str] = mapped_column(String(512), primary_key=True)

    payload: Mapped[dict[str, object]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )


class QueueMessage(Base):
    __tablename__ = "queue_messages"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    sender_id = Column(String, nullable=False)      # "glossary::<room_id>" inbound, worker id outbound
    receiver_id = Column(String, nullable=False)    # worker id inbound, room id outbound
    type = Column(String, nullable=False)
    payload = Column(JSON, nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_queue_messages_receiver_created", "receiver_id", "created_at"),
    )
