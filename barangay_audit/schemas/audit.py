from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime


class AuditRecordIn(BaseModel):
    action: str
    details: str = ""
    performed_by_user_id: Optional[str] = None

    entity_type: Optional[str] = None
    entity_id: Optional[str] = None

    metadata: Optional[Dict[str, Any]] = None


class AuditLogOut(BaseModel):
    id: int
    event_time: datetime
    performed_by_user_id: Optional[str] = None

    action: str
    details: str

    entity_type: Optional[str] = None
    entity_id: Optional[str] = None

    metadata: Optional[Dict[str, Any]] = Field(default=None)
    created_at: datetime


class FeedEntryOut(BaseModel):
    timestamp: datetime
    description: str


class ClearedOut(BaseModel):
    deleted: int


class DeletedOut(BaseModel):
    deleted: int
    cutoff: Optional[datetime] = None
