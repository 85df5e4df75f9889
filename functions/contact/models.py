from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Submission:
    name: str
    email: str
    message: str
    subject: Optional[str] = None


@dataclass(frozen=True)
class ContactMessage:
    """A validated submission with its generated key.

    ``(id, received_at)`` is the table key; records are never updated.
    """

    id: str
    received_at: str
    name: str
    email: str
    message: str
    subject: Optional[str] = None

    @classmethod
    def accept(cls, submission: Submission, record_id: str, received_at: str) -> "ContactMessage":
        return cls(id=record_id,
                   received_at=received_at,
                   name=submission.name,
                   email=submission.email,
                   message=submission.message,
                   subject=submission.subject)

    def to_item(self) -> Dict[str, Any]:
        item = {
            "id": self.id,
            "received_at": self.received_at,
            "name": self.name,
            "email": self.email,
            "message": self.message,
        }
        if self.subject:
            item["subject"] = self.subject
        return item
