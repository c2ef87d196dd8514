from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from barangay_audit.core.config import Settings
from barangay_audit.core.errors import SweepError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = timedelta(hours=24)
DEFAULT_RETENTION = timedelta(days=90)
DEFAULT_STARTUP_DELAY = timedelta(seconds=10)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _wait(stop_event: asyncio.Event, seconds: float) -> bool:
    """Sleep up to ``seconds``; True when the stop event fired."""
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return False
    return True


class RetentionSweeper:
    """
    Deletes audit events older than ``retention`` every ``interval``.

    Runs as a single background task per process with its own repository.
    A failed sweep is logged and the next tick proceeds as usual.
    """

    def __init__(
        self,
        repo,
        interval: timedelta = DEFAULT_INTERVAL,
        retention: timedelta = DEFAULT_RETENTION,
        startup_delay: timedelta = DEFAULT_STARTUP_DELAY,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repo = repo
        self.interval = max(interval, timedelta(hours=1))
        self.retention = max(retention, timedelta(days=1))
        self.startup_delay = startup_delay
        self.clock = clock
        self.running = False

    @classmethod
    def from_settings(cls, repo, settings: Settings) -> "RetentionSweeper":
        return cls(
            repo,
            interval=settings.cleanup_interval,
            retention=settings.retention,
            startup_delay=timedelta(seconds=settings.audit_cleanup_startup_delay_seconds),
        )

    def cutoff(self) -> datetime:
        return self.clock() - self.retention

    async def sweep_once(self, cutoff: datetime | None = None) -> int:
        if cutoff is None:
            cutoff = self.cutoff()
        logger.info(
            "Removing audit logs older than cutoff",
            extra={"cutoff": cutoff.isoformat()},
        )
        self.running = True
        try:
            deleted = await self.repo.delete_older_than(cutoff)
        except Exception as exc:
            raise SweepError(f"Audit retention sweep failed: {exc}") from exc
        finally:
            self.running = False

        logger.info(
            "Deleted old audit logs",
            extra={"deleted": deleted, "cutoff": cutoff.isoformat()},
        )
        return deleted

    async def run(self, stop_event: asyncio.Event) -> None:
        if await _wait(stop_event, self.startup_delay.total_seconds()):
            return

        logger.info(
            "Audit retention sweeper started",
            extra={
                "interval_hours": self.interval.total_seconds() / 3600,
                "retention_days": self.retention.days,
            },
        )

        while not stop_event.is_set():
            try:
                await self.sweep_once()
            except SweepError:
                logger.exception("Audit retention sweep failed")

            if await _wait(stop_event, self.interval.total_seconds()):
                break

        logger.info("Audit retention sweeper stopping")


async def audit_retention_loop(
    repo, settings: Settings, stop_event: asyncio.Event
) -> None:
    await RetentionSweeper.from_settings(repo, settings).run(stop_event)
