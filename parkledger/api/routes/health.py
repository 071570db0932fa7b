"""Health Probes — liveness and readiness for the ParkLedger API.

Invariants:
    - GET /health/ is 200 while the process is up (liveness)
    - GET /health/ready is 503 until the database answers and the ledger
      services are initialized (readiness)
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import parkledger.api.dependencies as services
import parkledger.infrastructure.database as db_module
from parkledger import __version__

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": "parkledger-api", "version": __version__}


@router.get("/ready")
async def readiness():
    manager = db_module.db_manager
    checks = {
        "database": "healthy" if manager and await manager.health_check() else "unavailable",
        "ledger": "healthy" if services.ledger is not None else "not_initialized",
    }
    if any(v != "healthy" for v in checks.values()):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
