"""
Shared fixtures: in-memory audit store, stub entity directory and an event
factory with controllable timestamps.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List

import pytest

os.environ.setdefault("AUDIT_CLEANUP_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")

from barangay_audit.models.audit_log import AuditEvent  # noqa: E402
from barangay_audit.repositories.directory_repository import UserLabel  # noqa: E402
from barangay_audit.repositories.in_memory import InMemoryAuditRepository  # noqa: E402

NOW = datetime(2025, 11, 20, 8, 0, tzinfo=timezone.utc)


class StubDirectory:
    """Entity directory with fixed contents that remembers its lookups."""

    def __init__(self, users: Dict[str, UserLabel] | None = None, sitios: Dict[str, str] | None = None):
        self.users = users or {}
        self.sitios = sitios or {}
        self.user_calls: List[set] = []
        self.sitio_calls: List[set] = []

    async def get_user_labels(self, ids: Iterable[str]) -> Dict[str, UserLabel]:
        ids = set(ids)
        self.user_calls.append(ids)
        return {i: self.users[i] for i in ids if i in self.users}

    async def get_sitio_names(self, ids: Iterable[str]) -> Dict[str, str]:
        ids = set(ids)
        self.sitio_calls.append(ids)
        return {i: self.sitios[i] for i in ids if i in self.sitios}


def make_event(
    action: str,
    details: str = "",
    minutes_ago: float = 0,
    entity_type: str | None = None,
    entity_id: str | None = None,
    **extra,
) -> AuditEvent:
    at = NOW - timedelta(minutes=minutes_ago)
    return AuditEvent(
        event_time=at,
        action=action,
        details=details,
        entity_type=entity_type,
        entity_id=entity_id,
        created_at=at,
        **extra,
    )


@pytest.fixture
def repo() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def directory() -> StubDirectory:
    return StubDirectory()


@pytest.fixture
def add_events(repo):
    async def _add(*events: AuditEvent) -> List[AuditEvent]:
        return [await repo.insert(e) for e in events]

    return _add
