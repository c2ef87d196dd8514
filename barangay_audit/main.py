import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from barangay_audit.api.admin.audit import router as audit_router
from barangay_audit.core.config import get_settings
from barangay_audit.core.errors import AuditError
from barangay_audit.core.logger import setup_logging
from barangay_audit.db.mongo import ensure_indexes, get_db
from barangay_audit.db.session import get_audit_repository
from barangay_audit.jobs.audit_retention import audit_retention_loop

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    await ensure_indexes(get_db())

    stop_event = asyncio.Event()
    sweeper_task = None
    if settings.audit_cleanup_enabled:
        # the sweeper gets its own repository, never the request handlers'
        sweeper_task = asyncio.create_task(
            audit_retention_loop(get_audit_repository(), settings, stop_event)
        )

    yield

    stop_event.set()
    if sweeper_task is not None:
        await sweeper_task


app = FastAPI(title="Barangay Audit Trail (MongoDB)", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuditError)
async def audit_error_handler(request: Request, exc: AuditError):
    logger.error("Audit store unavailable", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(status_code=503, content={"detail": "Audit store unavailable"})


app.include_router(audit_router)


@app.get("/")
def root():
    return {"ok": True, "docs": "/docs"}
