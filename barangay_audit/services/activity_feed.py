from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from barangay_audit.core.enums import WORKER_FEED_ENTITY_TYPES, EntityType
from barangay_audit.core.errors import StorageError
from barangay_audit.models.audit_log import AuditEvent
from barangay_audit.repositories.directory_repository import EntityDirectory, UserLabel
from barangay_audit.utils.labels import extract_label, extract_sitio_name, parse_int, short_id

logger = logging.getLogger(__name__)

DEFAULT_FEED_LIMIT = 40
DEFAULT_FEED_SIZE = 10
DEFAULT_WORKER_FEED_LIMIT = 30

Phrases = Sequence[Tuple[str, str]]

# "deactivate" must be tested before "activate", it contains it
USER_PHRASES: Phrases = (
    ("create", "➕ New User Added: {label}"),
    ("delete", "🗑️ Deleted user {label}"),
    ("edit", "✏️ Edited user {label}"),
    ("deactivate", "🔒 Deactivated user {label}"),
    ("activate", "🔓 Activated user {label}"),
)

SITIO_PHRASES: Phrases = (
    ("create", "➕ Created sitio {label}"),
    ("delete", "🗑️ Deleted sitio {label}"),
    ("edit", "✏️ Edited sitio {label}"),
)

SITIO_ID_PHRASES: Phrases = (
    ("delete", "🗑️ Deleted sitio {label}"),
    ("create", "➕ Created sitio {label}"),
)

GENERIC_PHRASES: Phrases = (
    ("delete", "🗑️ {label}"),
    ("create", "➕ {label}"),
    ("edit", "✏️ {label}"),
    ("deactivate", "🔒 {label}"),
    ("activate", "🔓 {label}"),
)

WORKER_SUPPRESSED = ("user", "role", "activate", "deactivate", "password")


class FeedEntry(NamedTuple):
    timestamp: datetime
    description: str


def _is(value: Optional[str], entity_type: EntityType) -> bool:
    return (value or "").lower() == entity_type.value.lower()


def phrase_for(action: str, label: str, phrases: Phrases) -> Optional[str]:
    """First phrase whose keyword occurs in ``action`` (case-insensitive)."""
    lowered = action.lower()
    for keyword, template in phrases:
        if keyword in lowered:
            return template.format(label=label)
    return None


def _with_details(text: str, details: str) -> str:
    return f"{text} - {details}" if details.strip() else text


def dedupe_events(events: Sequence[AuditEvent]) -> List[AuditEvent]:
    """
    Keep the most recent event of each ``(action, details)`` group, newest first.
    """
    latest: Dict[Tuple[str, str], AuditEvent] = {}
    for e in events:
        key = (e.action, e.details)
        kept = latest.get(key)
        if kept is None or (e.event_time, e.id or 0) > (kept.event_time, kept.id or 0):
            latest[key] = e

    return sorted(
        latest.values(), key=lambda e: (e.event_time, e.id or 0), reverse=True
    )


def describe_user_event(event: AuditEvent, users: Dict[str, UserLabel]) -> str:
    action = event.action or ""
    details = event.details or ""
    entity_id = event.entity_id or ""

    found = users.get(entity_id)
    if found is not None:
        if found.display_name.strip():
            label = found.display_name
        elif found.numeric_label is not None:
            label = str(found.numeric_label)
        else:
            label = short_id(entity_id)
        return phrase_for(action, label, USER_PHRASES) or _with_details(
            f"{action}: {label}", details
        )

    extracted = extract_label(details)
    if extracted.strip():
        return phrase_for(action, extracted, USER_PHRASES) or f"{action}: {extracted}"

    return _with_details(f"{action}: {short_id(entity_id)}", details)


def describe_sitio_event(event: AuditEvent, sitios: Dict[str, str]) -> str:
    action = event.action or ""
    details = event.details or ""
    entity_id = event.entity_id or ""

    name = sitios.get(entity_id)
    if name is None:
        name = extract_sitio_name(details)
    if name is not None:
        label = f"'{name}'"
        return phrase_for(action, label, SITIO_PHRASES) or _with_details(
            f"{action}: {label}", details
        )

    sitio_number = parse_int(entity_id)
    if sitio_number is not None:
        label = f"(Id: {sitio_number})"
        return phrase_for(action, label, SITIO_ID_PHRASES) or _with_details(
            f"{action}: Sitio {label}", details
        )

    return _with_details(f"{action}: {short_id(entity_id)}", details)


def describe_event(
    event: AuditEvent,
    users: Dict[str, UserLabel],
    sitios: Dict[str, str],
) -> str:
    """Human-readable one-liner for an admin activity feed."""
    if (event.entity_id or "").strip():
        if _is(event.entity_type, EntityType.user):
            return describe_user_event(event, users)
        if _is(event.entity_type, EntityType.sitio):
            return describe_sitio_event(event, sitios)

    action = event.action or ""
    details = event.details or ""
    return phrase_for(action, details, GENERIC_PHRASES) or f"{action}: {details}"


def describe_worker_event(event: AuditEvent) -> str:
    """
    Health-worker view of an event. Returns "" for entries a BHW should not see.
    """
    action = (event.action or "").lower()
    details = event.details or ""

    if _is(event.entity_type, EntityType.household):
        for keyword, verb in (
            ("create", "Added"),
            ("edit", "Edited"),
            ("archive", "Archived"),
            ("restore", "Restored"),
        ):
            if keyword in action:
                return f"{verb} household — {details}"

    if _is(event.entity_type, EntityType.resident):
        for keyword, verb in (
            ("create", "Added"),
            ("edit", "Updated"),
            ("delete", "Removed"),
        ):
            if keyword in action:
                return f"{verb} resident — {details}"

    if _is(event.entity_type, EntityType.sitio) and ("assign" in action or "update" in action):
        return f"Updated sitio — {details}"

    if any(word in action for word in WORKER_SUPPRESSED):
        return ""

    return f"{event.action or ''} {details}".strip()


class ActivityFeedFormatter:
    """Builds the dashboard activity feeds from recent audit events."""

    def __init__(self, repo):
        self.repo = repo

    async def _resolve(
        self, events: Sequence[AuditEvent], directory: EntityDirectory
    ) -> Tuple[Dict[str, UserLabel], Dict[str, str]]:
        scoped = [e for e in events if (e.entity_id or "").strip()]
        user_ids = {e.entity_id for e in scoped if _is(e.entity_type, EntityType.user)}
        sitio_ids = {e.entity_id for e in scoped if _is(e.entity_type, EntityType.sitio)}

        users: Dict[str, UserLabel] = {}
        sitios: Dict[str, str] = {}
        try:
            if user_ids:
                users = await directory.get_user_labels(user_ids)
            if sitio_ids:
                sitios = await directory.get_sitio_names(sitio_ids)
        except StorageError:
            # names are an enrichment; the details text still describes the event
            logger.warning(
                "Directory lookup failed, formatting feed from details",
                exc_info=True,
            )
        return users, sitios

    async def build_feed(
        self,
        directory: EntityDirectory,
        limit: int = DEFAULT_FEED_LIMIT,
        feed_size: int = DEFAULT_FEED_SIZE,
    ) -> List[FeedEntry]:
        recent = await self.repo.list_recent(limit)
        events = dedupe_events(recent)[: max(feed_size, 0)]
        if not events:
            return []

        users, sitios = await self._resolve(events, directory)
        return [
            FeedEntry(timestamp=e.event_time, description=describe_event(e, users, sitios))
            for e in events
        ]

    async def build_worker_feed(
        self, limit: int = DEFAULT_WORKER_FEED_LIMIT
    ) -> List[FeedEntry]:
        events = await self.repo.list_recent(limit, entity_types=WORKER_FEED_ENTITY_TYPES)

        feed: List[FeedEntry] = []
        for e in events:
            text = describe_worker_event(e)
            if text.strip():
                feed.append(FeedEntry(timestamp=e.event_time, description=text))
        return feed
