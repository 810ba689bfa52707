# glossary_bot/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


UNKNOWN_AUTHOR = "unknown"


class AddResult(str, Enum):
    ADDED = "added"
    DUPLICATE = "duplicate"
    ERROR = "error"


@dataclass(frozen=True)
class KeyValuePair:
    key: str
    value: str


@dataclass
class GlossaryValue:
    """
    One definition of a key plus who added it and when.
    Serialized with the camel-case field names the stored records use.
    """
    value: str
    created_at: str = ""
    created_by: str = UNKNOWN_AUTHOR

    def to_dict(self) -> Dict[str, str]:
        return {
            "value": self.value,
            "createdAt": self.created_at,
            "createdBy": self.created_by,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GlossaryValue":
        return cls(
            value=str(data.get("value") or ""),
            created_at=str(data.get("createdAt") or ""),
            created_by=str(data.get("createdBy") or UNKNOWN_AUTHOR),
        )


# -----------------------
# Host message shapes
# -----------------------

@dataclass
class Sender:
    id: str
    username: Optional[str] = None
    name: Optional[str] = None
    emails: List[Dict[str, Any]] = field(default_factory=list)

    def resolve_identity(self) -> str:
        """
        Verified e-mail first, then any e-mail, then username, then display name.
        """
        primary = next((e for e in self.emails if e.get("verified")), None)
        if primary is None and self.emails:
            primary = self.emails[0]
        address = (primary or {}).get("address")
        return address or self.username or self.name or UNKNOWN_AUTHOR

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Sender":
        data = data or {}
        return cls(
            id=str(data.get("id") or ""),
            username=data.get("username"),
            name=data.get("name"),
            emails=list(data.get("emails") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "emails": list(self.emails),
        }


@dataclass
class Room:
    id: str
    kind: str

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Room":
        data = data or {}
        return cls(id=str(data.get("id") or ""), kind=str(data.get("kind") or ""))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "kind": self.kind}


@dataclass
class PostedMessage:
    id: str
    text: Optional[str]
    sender: Sender
    room: Room

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PostedMessage":
        return cls(
            id=str(data.get("id") or ""),
            text=data.get("text"),
            sender=Sender.from_dict(data.get("sender")),
            room=Room.from_dict(data.get("room")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "sender": self.sender.to_dict(),
            "room": self.room.to_dict(),
        }
