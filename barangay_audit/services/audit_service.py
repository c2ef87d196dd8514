import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from barangay_audit.core.errors import StorageError
from barangay_audit.models.audit_log import AuditEvent

logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, repo):
        self.repo = repo

    async def record(
        self,
        action: str,
        details: str,
        performed_by_user_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """
        Append one audit event stamped with the current UTC time.

        Blank values are stored as given. Raises ``StorageError`` when the
        store is unavailable.
        """
        # entity reference is all or nothing
        if not (entity_type or "").strip() or not (entity_id or "").strip():
            entity_type = entity_id = None

        now = datetime.now(timezone.utc)
        event = AuditEvent(
            event_time=now,
            performed_by_user_id=performed_by_user_id,
            action=action,
            details=details,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
            created_at=now,
        )
        return await self.repo.insert(event)

    async def record_safely(self, action: str, details: str, **kwargs) -> Optional[AuditEvent]:
        """Like ``record`` but logs and returns ``None`` when the write fails."""
        try:
            return await self.record(action, details, **kwargs)
        except StorageError:
            logger.warning("Audit event was not recorded", extra={"action": action}, exc_info=True)
            return None

    async def list_logs(self, limit: int = 50, offset: int = 0) -> List[AuditEvent]:
        return await self.repo.list_recent(limit, offset=offset)

    async def clear_all(self) -> int:
        deleted = await self.repo.delete_all()
        logger.info("Cleared audit log", extra={"deleted": deleted})
        return deleted
