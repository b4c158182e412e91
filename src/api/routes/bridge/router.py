"""Endpoints de comando do bridge.

Endpoints:
- GET /api/status: snapshot público do supervisor
- GET /api/pairing: QR code do pairing challenge ativo
- POST /api/send-message: envio outbound (Bearer token)
- POST /api/session/repair: força novo pareamento (Bearer token)

O núcleo assume chamadas já autorizadas; a checagem do token é
responsabilidade exclusiva desta camada.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.bootstrap.dependencies import create_send_message_use_case
from app.lifecycle import NOT_CONNECTED, VALIDATION_ERROR
from app.observability import reset_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

router = APIRouter()


class SendMessageRequest(BaseModel):
    """Corpo de POST /api/send-message."""

    to: str = Field(min_length=1, max_length=64)
    message: str = Field(min_length=1)


def _is_authorized(request: Request) -> bool:
    settings = request.app.state.bridge_settings
    provided = request.headers.get("authorization", "")
    expected = f"Bearer {settings.security_token}"
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def require_token(request: Request) -> None:
    """Rejeita com 401 antes de qualquer validação do corpo."""
    if not _is_authorized(request):
        logger.warning("unauthorized_request", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Status corrente (nunca bloqueia o supervisor)."""
    snapshot = request.app.state.supervisor.get_status()
    return JSONResponse(content=snapshot.to_public_dict())


@router.get("/pairing")
async def get_pairing(request: Request) -> JSONResponse:
    """QR code do challenge ativo como data URL."""
    snapshot = request.app.state.supervisor.get_status()
    challenge = snapshot.pairing_challenge
    if challenge is None or challenge.image_data_url is None:
        return JSONResponse(
            content={"error": "No pairing challenge available", "status": snapshot.display_status},
            status_code=status.HTTP_404_NOT_FOUND,
        )
    return JSONResponse(
        content={
            "qr": challenge.image_data_url,
            "issued_at": challenge.issued_at.isoformat(),
        }
    )


@router.post("/send-message", dependencies=[Depends(require_token)])
async def send_message(request: Request, body: SendMessageRequest) -> JSONResponse:
    """Envia mensagem de texto pelo Session Handle ativo."""
    token = set_correlation_id(request.headers.get("x-correlation-id"))
    try:
        use_case = create_send_message_use_case(request.app.state.supervisor)
        result = await use_case.execute(body.to, body.message)
    finally:
        reset_correlation_id(token)

    if result.success:
        return JSONResponse(
            content={"success": True, "message": "Message sent successfully"},
        )

    if result.error_code == VALIDATION_ERROR:
        status_code = 422
    elif result.error_code == NOT_CONNECTED:
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        logger.error("send_message_error", extra={"error_code": result.error_code})
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return JSONResponse(
        content={"error": result.error_message, "code": result.error_code},
        status_code=status_code,
    )


@router.post("/session/repair", dependencies=[Depends(require_token)])
async def repair_session(request: Request) -> JSONResponse:
    """Apaga credenciais e reinicia o pareamento."""
    supervisor = request.app.state.supervisor
    await supervisor.repair()
    logger.info("repair_accepted")
    return JSONResponse(
        content=supervisor.get_status().to_public_dict(),
        status_code=status.HTTP_202_ACCEPTED,
    )
