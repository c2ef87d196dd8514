from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class AuditEvent(BaseModel):
    """
    Append-only record of an administrative action.

    ``event_time`` is when the action happened and ``created_at`` when it was
    persisted; the recorder sets both once and nothing updates them.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    event_time: datetime

    performed_by_user_id: Optional[str] = None
    action: str               # CreateUser, DeleteSitio, DeactivateUser
    details: str

    entity_type: Optional[str] = None   # User, Sitio, System
    entity_id: Optional[str] = None     # numeric for sitios, opaque for users
    metadata: Optional[Dict[str, Any]] = None

    created_at: datetime
    modified_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AuditEvent":
        data = {k: v for k, v in doc.items() if k != "_id"}
        return cls.model_validate(data)
