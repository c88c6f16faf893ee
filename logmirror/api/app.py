"""
HTTP API exposing the mirrored log.

Routes:
- GET  /api/health  liveness
- GET  /api/logs    newest-first pagination over the reversed file
- GET  /api/stats   file sizes, line count and sync state
- POST /api/sync    manual sync trigger
- GET  /raw         the reversed file as plain text
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse

from logmirror.errors import (
    CycleAlreadyInProgress,
    EmptyDownload,
    MirrorError,
    RemoteUnavailable,
)
from logmirror.scheduler import PeriodicSync
from logmirror.sync.orchestrator import SyncOrchestrator
from logmirror.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["logs"])

# Served outside /api for plain-text clients such as curl
raw_router = APIRouter(tags=["raw"])


def _orchestrator(request: Request) -> SyncOrchestrator:
    return request.app.state.orchestrator


@router.get("/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/logs")
def get_logs(
    request: Request,
    page: int = Query(1),
    page_size: Optional[int] = Query(None, alias="pageSize"),
):
    """Get one page of log lines, newest first."""
    settings = request.app.state.settings
    if page_size is None:
        page_size = settings["default_page_size"]

    if page < 1:
        raise HTTPException(status_code=400, detail="Page must be >= 1")
    if page_size < 1 or page_size > settings["max_page_size"]:
        raise HTTPException(
            status_code=400,
            detail=f"Page size must be between 1 and {settings['max_page_size']}",
        )

    result = _orchestrator(request).read_page(page, page_size)

    logger.debug(
        "Served log page",
        page=page,
        page_size=page_size,
        lines=len(result.lines),
        total_lines=result.total_lines,
    )
    return result.to_dict()


@router.get("/stats")
def get_stats(request: Request):
    """Get mirror statistics, including the live remote size when reachable."""
    orchestrator = _orchestrator(request)
    stats = orchestrator.snapshot()

    try:
        stats["remoteSize"] = orchestrator.remote_size()
    except RemoteUnavailable as e:
        logger.warning("Remote size unavailable for stats", **e.to_dict())
        stats["remoteSize"] = None

    scheduler: Optional[PeriodicSync] = request.app.state.scheduler
    stats["scheduler"] = scheduler.stats() if scheduler else None
    return stats


@router.post("/sync")
def trigger_sync(request: Request):
    """Run one sync cycle now."""
    result = _orchestrator(request).run_cycle()
    return {"success": True, "result": result.to_dict()}


@raw_router.get("/raw")
def get_raw(request: Request):
    """Get the whole reversed file, newest line first."""
    path = _orchestrator(request).reversed_log_file
    if not path.exists():
        return PlainTextResponse("No file found.", status_code=404)
    return FileResponse(path, media_type="text/plain; charset=utf-8")


async def _mirror_error_handler(request: Request, exc: MirrorError) -> JSONResponse:
    if isinstance(exc, CycleAlreadyInProgress):
        status_code = 429
    elif isinstance(exc, (RemoteUnavailable, EmptyDownload)):
        status_code = 502
    else:
        status_code = 500

    logger.warning(
        "Request failed",
        method=request.method,
        path=request.url.path,
        status_code=status_code,
        error=exc.to_dict(),
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def create_app(
    orchestrator: SyncOrchestrator,
    scheduler: Optional[PeriodicSync] = None,
    default_page_size: int = 100,
    max_page_size: int = 1000,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        orchestrator: Orchestrator serving reads and manual syncs
        scheduler: Optional periodic driver started and stopped with the app
        default_page_size: Page size when the client sends none
        max_page_size: Largest page size a client may request

    Returns:
        Configured application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if scheduler is not None:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop()

    app = FastAPI(title="logmirror", lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.scheduler = scheduler
    app.state.settings = {
        "default_page_size": default_page_size,
        "max_page_size": max_page_size,
    }

    app.include_router(router)
    app.include_router(raw_router)
    app.add_exception_handler(MirrorError, _mirror_error_handler)

    return app
