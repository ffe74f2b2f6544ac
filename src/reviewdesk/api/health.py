"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and dependencies (database, document storage) are reachable.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from starlette.concurrency import run_in_threadpool

from reviewdesk import __version__
from reviewdesk.config import settings
from reviewdesk.db.engine import engine
from reviewdesk.storage import BlobStore, get_blob_store

router = APIRouter()

# Probe key; only its absence/presence round trip matters.
_STORAGE_PROBE = ".healthcheck"


@router.get("/health")
async def health_check(store: BlobStore = Depends(get_blob_store)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    # Check database
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    # Check document storage
    try:
        await run_in_threadpool(store.exists, _STORAGE_PROBE)
        checks["storage"] = "ok"
    except Exception as e:
        checks["storage"] = f"error: {e}"

    status = "healthy" if all(
        v == "ok" for k, v in checks.items() if k != "version"
    ) else "degraded"

    return {
        "status": status,
        "environment": settings.environment,
        "storageBackend": settings.storage_backend,
        **checks,
    }
