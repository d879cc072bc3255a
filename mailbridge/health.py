"""FastAPI health endpoints for Kubernetes liveness and readiness probes."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from .service import BridgeService


def create_health_app(service: BridgeService) -> FastAPI:
    """Build a minimal FastAPI app with ``/health`` and ``/ready`` routes.

    ``/health`` stays 200 while the bridge is starting or running; a
    degraded bridge (mailbox unreachable on the last cycle) answers 503.
    """
    app = FastAPI(title="mailbridge health", docs_url=None, redoc_url=None)

    @app.get("/health")
    async def health() -> JSONResponse:
        status = service.status.value
        code = 200 if status in ("starting", "running") else 503
        return JSONResponse(
            content={
                "service": "mailbridge",
                "status": status,
                "uptime_seconds": time.monotonic() - service.start_time,
                "last_run_time": (
                    service.last_run_time.isoformat() if service.last_run_time else None
                ),
                "last_run_error": service.last_run_error,
                "totals": dict(service.totals),
            },
            status_code=code,
        )

    @app.get("/ready")
    async def ready() -> JSONResponse:
        is_ready = service.status.value == "running"
        return JSONResponse(
            content={"ready": is_ready},
            status_code=200 if is_ready else 503,
        )

    return app
