from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from barangay_audit.core.errors import StorageError
from barangay_audit.models.audit_log import AuditEvent

logger = logging.getLogger(__name__)

_COUNTER_ID = "audit_logs"


class AuditRepository:
    """Append/query/bulk-delete over the ``audit_logs`` collection."""

    def __init__(self, collection, counters):
        self.collection = collection
        self.counters = counters

    async def _next_id(self) -> int:
        doc = await self.counters.find_one_and_update(
            {"_id": _COUNTER_ID},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])

    async def insert(self, event: AuditEvent) -> AuditEvent:
        try:
            stored = event.model_copy(update={"id": await self._next_id()})
            await self.collection.insert_one(stored.to_document())
        except PyMongoError as exc:
            logger.exception(
                "Failed to record audit event",
                extra={"action": event.action, "entity_type": event.entity_type},
            )
            raise StorageError(f"Failed to record audit event: {exc}") from exc
        return stored

    async def list_recent(
        self,
        limit: int,
        offset: int = 0,
        entity_types: Optional[Iterable[str]] = None,
    ) -> List[AuditEvent]:
        if limit <= 0:
            return []

        filt: dict = {}
        if entity_types is not None:
            filt["entity_type"] = {"$in": list(entity_types)}

        try:
            cursor = (
                self.collection.find(filt)
                .sort([("event_time", DESCENDING), ("id", DESCENDING)])
                .skip(max(offset, 0))
                .limit(limit)
            )
            rows = await cursor.to_list(length=limit)
        except PyMongoError as exc:
            logger.exception("Failed to list audit events", extra={"limit": limit})
            raise StorageError(f"Failed to list audit events: {exc}") from exc

        return [AuditEvent.from_document(r) for r in rows]

    async def delete_older_than(self, cutoff: datetime) -> int:
        try:
            result = await self.collection.delete_many({"event_time": {"$lt": cutoff}})
        except PyMongoError as exc:
            logger.exception(
                "Failed to delete old audit events",
                extra={"cutoff": cutoff.isoformat()},
            )
            raise StorageError(f"Failed to delete old audit events: {exc}") from exc
        return result.deleted_count

    async def delete_all(self) -> int:
        try:
            result = await self.collection.delete_many({})
        except PyMongoError as exc:
            logger.exception("Failed to clear audit events")
            raise StorageError(f"Failed to clear audit events: {exc}") from exc
        return result.deleted_count
