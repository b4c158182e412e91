"""Use case para envio outbound pelo bridge."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.lifecycle.models import VALIDATION_ERROR, SendResult
from app.use_cases.bridge.validation import (
    ValidationError,
    normalize_destination,
    validate_message_text,
)

if TYPE_CHECKING:
    from app.lifecycle.supervisor import LifecycleSupervisor

logger = logging.getLogger(__name__)


class SendMessageUseCase:
    """Orquestra validação, normalização do destino e envio.

    Não há fila nem retry: o resultado do supervisor é devolvido
    diretamente ao chamador.
    """

    def __init__(self, supervisor: LifecycleSupervisor) -> None:
        self._supervisor = supervisor

    async def execute(self, destination: str, message: str) -> SendResult:
        """Executa envio com validação e tratamento de erro."""
        try:
            validate_message_text(message)
            jid = normalize_destination(destination)
        except ValidationError as exc:
            logger.info("send_rejected", extra={"error_code": VALIDATION_ERROR})
            return SendResult.failure(VALIDATION_ERROR, str(exc))

        return await self._supervisor.request_send(jid, message)
