"""
Health Router

Endpoints:
- /healthz - Liveness (is the process running?)
- /health  - Alias for /healthz
- /readyz  - Readiness (are the metadata store, blob store and ledger reachable?)
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings, get_settings
from app.core.database import get_engine
from app.services.document_registry import get_blob_store_backend, get_ledger_backend

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/healthz")
async def health_check():
    """Liveness probe. Returns 200 while the process is alive."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health")
async def health_alias():
    """Alias for /healthz."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/readyz")
async def readiness_check(settings: Settings = Depends(get_settings)):
    """
    Readiness probe.

    The metadata store is required; blob store and ledger problems degrade
    the service (registration without attestation still works) and are
    reported as "degraded".
    """
    checks: dict[str, str] = {}

    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["metadata_store"] = "ok"
    except SQLAlchemyError as e:
        checks["metadata_store"] = f"error: {e.__class__.__name__}"

    blob_store = get_blob_store_backend()
    checks[f"blob_store_{blob_store.backend_name}"] = "ok" if await blob_store.is_connected() else "unreachable"

    ledger = get_ledger_backend()
    checks[f"ledger_{ledger.backend_name}"] = "ok" if await ledger.is_connected() else "unreachable"

    if checks["metadata_store"] != "ok":
        status_value, status_code = "not_ready", 503
    elif all(value == "ok" for value in checks.values()):
        status_value, status_code = "ready", 200
    else:
        status_value, status_code = "degraded", 200

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_value,
            "version": settings.app_version,
            "uptime_seconds": round(time.time() - _start_time, 1),
            "checks": checks,
        },
    )
