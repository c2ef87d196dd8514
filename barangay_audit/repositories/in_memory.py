"""
In-memory audit repository for local development and tests.

Data is lost on restart.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from barangay_audit.models.audit_log import AuditEvent


class InMemoryAuditRepository:
    """Same async interface as ``AuditRepository``, backed by a dict."""

    def __init__(self) -> None:
        self._events: Dict[int, AuditEvent] = {}
        self._seq = 0

    async def insert(self, event: AuditEvent) -> AuditEvent:
        self._seq += 1
        stored = event.model_copy(update={"id": self._seq})
        self._events[stored.id] = stored
        return stored

    async def list_recent(
        self,
        limit: int,
        offset: int = 0,
        entity_types: Optional[Iterable[str]] = None,
    ) -> List[AuditEvent]:
        if limit <= 0:
            return []

        results = list(self._events.values())
        if entity_types is not None:
            allowed = set(entity_types)
            results = [e for e in results if e.entity_type in allowed]

        results.sort(key=lambda e: (e.event_time, e.id), reverse=True)
        offset = max(offset, 0)
        return results[offset : offset + limit]

    async def delete_older_than(self, cutoff: datetime) -> int:
        stale = [i for i, e in self._events.items() if e.event_time < cutoff]
        for i in stale:
            del self._events[i]
        return len(stale)

    async def delete_all(self) -> int:
        count = len(self._events)
        self._events.clear()
        return count

    # testing helpers
    def get_all(self) -> List[AuditEvent]:
        return list(self._events.values())
