from fastapi import APIRouter, Depends, Query, status

from barangay_audit.core.config import Settings, get_settings
from barangay_audit.db.session import get_audit_repository, get_directory
from barangay_audit.jobs.audit_retention import RetentionSweeper
from barangay_audit.schemas.audit import (
    AuditLogOut,
    AuditRecordIn,
    ClearedOut,
    DeletedOut,
    FeedEntryOut,
)
from barangay_audit.services.activity_feed import ActivityFeedFormatter
from barangay_audit.services.audit_service import AuditService

router = APIRouter(prefix="/admin/audit", tags=["Admin - Audit"])


def get_audit_service(repo=Depends(get_audit_repository)) -> AuditService:
    return AuditService(repo)


def get_feed_formatter(repo=Depends(get_audit_repository)) -> ActivityFeedFormatter:
    return ActivityFeedFormatter(repo)


# ========================
# LIST / RECORD
# ========================
@router.get("", response_model=list[AuditLogOut])
async def list_audit_logs(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: AuditService = Depends(get_audit_service),
):
    events = await service.list_logs(limit=limit, offset=offset)
    return [e.model_dump() for e in events]


@router.post("", response_model=AuditLogOut, status_code=status.HTTP_201_CREATED)
async def record_audit_event(
    body: AuditRecordIn,
    service: AuditService = Depends(get_audit_service),
):
    event = await service.record(**body.model_dump())
    return event.model_dump()


# ========================
# ACTIVITY FEEDS
# ========================
@router.get("/feed", response_model=list[FeedEntryOut])
async def activity_feed(
    limit: int | None = Query(None, ge=1, le=500),
    feed_size: int | None = Query(None, ge=1, le=100),
    formatter: ActivityFeedFormatter = Depends(get_feed_formatter),
    directory=Depends(get_directory),
    settings: Settings = Depends(get_settings),
):
    feed = await formatter.build_feed(
        directory,
        limit=limit or settings.activity_feed_limit,
        feed_size=feed_size or settings.activity_feed_size,
    )
    return [entry._asdict() for entry in feed]


@router.get("/worker-feed", response_model=list[FeedEntryOut])
async def worker_activity_feed(
    limit: int = Query(30, ge=1, le=500),
    formatter: ActivityFeedFormatter = Depends(get_feed_formatter),
):
    feed = await formatter.build_worker_feed(limit=limit)
    return [entry._asdict() for entry in feed]


# ========================
# CLEAR / CLEANUP
# ========================
@router.delete("", response_model=ClearedOut)
async def clear_recent_activity(service: AuditService = Depends(get_audit_service)):
    return {"deleted": await service.clear_all()}


@router.post("/cleanup", response_model=DeletedOut)
async def run_retention_cleanup(
    repo=Depends(get_audit_repository),
    settings: Settings = Depends(get_settings),
):
    sweeper = RetentionSweeper.from_settings(repo, settings)
    cutoff = sweeper.cutoff()
    deleted = await sweeper.sweep_once(cutoff)
    return {"deleted": deleted, "cutoff": cutoff}
