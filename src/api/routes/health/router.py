"""Endpoints de health check e readiness."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from fsm import ConnectionStatus

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "wa-bridge-lite"


class HealthResponse(BaseModel):
    """Resposta do health check."""

    status: str
    service: str
    timestamp: str
    version: str = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe: verifica se o serviço está rodando."""
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe: pronto apenas com a sessão conectada."""
    supervisor = getattr(request.app.state, "supervisor", None)
    if supervisor is None:
        payload = {
            "status": "not_ready",
            "state": None,
            "error": "supervisor_not_initialized",
            "timestamp": datetime.now(UTC).isoformat(),
        }
        return JSONResponse(content=payload, status_code=503)

    snapshot = supervisor.get_status()
    ready = snapshot.state == ConnectionStatus.CONNECTED
    payload = {
        "status": "ready" if ready else "not_ready",
        "state": snapshot.state.value,
        "error": snapshot.last_error,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return JSONResponse(content=payload, status_code=200 if ready else 503)
