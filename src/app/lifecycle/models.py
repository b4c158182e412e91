"""Modelos de domínio do ciclo de vida da conexão.

Vereditos de desconexão, pairing challenge, snapshot de status
observável e resultado de envio outbound.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from fsm.states.connection import ConnectionStatus

RawDisconnectCode = int | float | str | None


class DisconnectCause(StrEnum):
    """Causa atribuída a um fechamento de conexão."""

    LOGGED_OUT = "LOGGED_OUT"
    RATE_LIMITED = "RATE_LIMITED"
    TRANSIENT = "TRANSIENT"
    UNKNOWN = "UNKNOWN"


class RecoveryAction(StrEnum):
    """Ação de recuperação recomendada pelo classificador."""

    NO_RETRY = "NO_RETRY"
    RETRY_AFTER = "RETRY_AFTER"
    INVALIDATE_AND_RETRY_AFTER = "INVALIDATE_AND_RETRY_AFTER"


@dataclass(frozen=True, slots=True)
class DisconnectVerdict:
    """Veredito do classificador: causa + ação de recuperação.

    Attributes:
        cause: Causa classificada
        action: Ação recomendada
        delay_seconds: Atraso até o restart (None para NO_RETRY)
        raw_code: Código bruto recebido do Session Handle
    """

    cause: DisconnectCause
    action: RecoveryAction
    delay_seconds: float | None = None
    raw_code: RawDisconnectCode = None

    def __post_init__(self) -> None:
        if self.action == RecoveryAction.NO_RETRY:
            if self.delay_seconds is not None:
                raise ValueError("NO_RETRY não aceita delay_seconds")
            return
        if self.delay_seconds is None or self.delay_seconds < 0:
            raise ValueError(f"{self.action} exige delay_seconds >= 0")

    @property
    def should_retry(self) -> bool:
        return self.action != RecoveryAction.NO_RETRY

    @property
    def should_invalidate(self) -> bool:
        return self.action == RecoveryAction.INVALIDATE_AND_RETRY_AFTER

    def to_log_dict(self) -> dict[str, Any]:
        return {
            "cause": self.cause.value,
            "action": self.action.value,
            "delay_seconds": self.delay_seconds,
            "raw_code": self.raw_code,
        }


@dataclass(frozen=True, slots=True)
class PairingChallenge:
    """Token de pareamento de curta duração.

    O token nunca aparece em repr nem em logs.
    """

    token: str = field(repr=False)
    image_data_url: str | None = field(default=None, repr=False)
    issued_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("token de pareamento não pode ser vazio")

    @property
    def is_rendered(self) -> bool:
        return self.image_data_url is not None


# Rótulos exibidos pela superfície HTTP, herdados do bridge original
_DISPLAY_STATUS: dict[ConnectionStatus, str] = {
    ConnectionStatus.IDLE: "Disconnected",
    ConnectionStatus.STARTING: "Starting WhatsApp Library...",
    ConnectionStatus.AWAITING_PAIRING: "READY TO SCAN",
    ConnectionStatus.CONNECTED: "CONNECTED",
    ConnectionStatus.FATAL_ERROR: "Startup Error",
}


@dataclass(frozen=True, slots=True)
class StatusSnapshot:
    """Projeção pública e imutável do estado do supervisor.

    Substituída por inteiro a cada transição; leitores nunca veem
    uma tupla parcialmente atualizada.

    Attributes:
        state: Estado de conexão atual
        pairing_challenge: Challenge ativo (apenas em AWAITING_PAIRING)
        last_error: Motivo da falha mais recente
        verdict: Veredito do último fechamento (em STOPPED)
        socket_initialized: Se existe Session Handle aberto
        updated_at: Momento da publicação
    """

    state: ConnectionStatus = ConnectionStatus.IDLE
    pairing_challenge: PairingChallenge | None = None
    last_error: str | None = None
    verdict: DisconnectVerdict | None = None
    socket_initialized: bool = False
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if (
            self.pairing_challenge is not None
            and self.state != ConnectionStatus.AWAITING_PAIRING
        ):
            raise ValueError(
                f"pairing_challenge só é permitido em AWAITING_PAIRING, estado: {self.state}"
            )

    @property
    def has_pairing_challenge(self) -> bool:
        return self.pairing_challenge is not None

    @property
    def display_status(self) -> str:
        """Rótulo legível do estado (formato do bridge original)."""
        if self.state == ConnectionStatus.STOPPED:
            reason = self.verdict.raw_code if self.verdict else None
            return f"Stopped (Reason: {reason})"
        return _DISPLAY_STATUS[self.state]

    def to_public_dict(self) -> dict[str, Any]:
        """Formato exposto em GET /api/status."""
        return {
            "status": self.display_status,
            "state": self.state.value,
            "hasQR": self.has_pairing_challenge,
            "error": self.last_error,
            "socket": self.socket_initialized,
            "verdict": self.verdict.to_log_dict() if self.verdict else None,
            "updated_at": self.updated_at.isoformat(),
        }


# Códigos de erro de envio
NOT_CONNECTED = "NOT_CONNECTED"
VALIDATION_ERROR = "VALIDATION_ERROR"
SEND_FAILED = "SEND_FAILED"


@dataclass(frozen=True, slots=True)
class SendResult:
    """Resultado de um envio outbound (at-most-once, sem retry)."""

    success: bool
    destination: str | None = None
    error_code: str | None = None
    error_message: str | None = None

    def __post_init__(self) -> None:
        if not self.success and self.error_code is None:
            raise ValueError("Envio com falha deve incluir error_code")

    @classmethod
    def ok(cls, destination: str) -> SendResult:
        return cls(success=True, destination=destination)

    @classmethod
    def failure(
        cls,
        error_code: str,
        error_message: str,
        destination: str | None = None,
    ) -> SendResult:
        return cls(
            success=False,
            destination=destination,
            error_code=error_code,
            error_message=error_message,
        )
