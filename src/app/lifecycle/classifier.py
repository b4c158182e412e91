"""Classificador de desconexões.

Mapeia o código bruto de fechamento para um veredito com causa e
ação de recuperação:

| código                 | causa        | ação                              |
|------------------------|--------------|-----------------------------------|
| logged-out (401)       | LOGGED_OUT   | NO_RETRY                          |
| 405                    | RATE_LIMITED | INVALIDATE_AND_RETRY_AFTER (60s)  |
| qualquer outro / None  | TRANSIENT / UNKNOWN | RETRY_AFTER (5s)           |

Não há backoff exponencial nem contador de falhas: quedas repetidas
recebem sempre o mesmo atraso fixo.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.lifecycle.models import (
    DisconnectCause,
    DisconnectVerdict,
    RawDisconnectCode,
    RecoveryAction,
)

# Sentinela de logout do backend (DisconnectReason.loggedOut)
LOGGED_OUT_CODE = 401
LOGGED_OUT_ALIASES = frozenset({"logged_out", "loggedout"})

# Sessão corrompida/bloqueada pelo provedor
SESSION_REJECTED_CODE = 405

DEFAULT_RETRY_DELAY_SECONDS = 5.0
DEFAULT_INVALIDATE_RETRY_DELAY_SECONDS = 60.0


def normalize_code(raw_code: RawDisconnectCode) -> int | str | None:
    """Normaliza o código bruto: strings numéricas viram int.

    Floats inteiros (ex: 405.0) viram int. Booleanos não são códigos
    válidos e viram None.
    """
    if raw_code is None or isinstance(raw_code, bool):
        return None
    if isinstance(raw_code, int):
        return raw_code
    if isinstance(raw_code, float) and raw_code.is_integer():
        return int(raw_code)
    text = str(raw_code).strip()
    if not text:
        return None
    if text.lstrip("-").isdigit():
        return int(text)
    return text


def is_logged_out(raw_code: RawDisconnectCode) -> bool:
    """Verifica se o código é a sentinela de logout."""
    code = normalize_code(raw_code)
    if isinstance(code, int):
        return code == LOGGED_OUT_CODE
    return code is not None and code.lower() in LOGGED_OUT_ALIASES


@dataclass(frozen=True, slots=True)
class DisconnectPolicy:
    """Atrasos aplicados pelo classificador.

    Attributes:
        retry_delay_seconds: Atraso para quedas transitórias/desconhecidas
        invalidate_retry_delay_seconds: Atraso após invalidar credenciais (405)
    """

    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    invalidate_retry_delay_seconds: float = DEFAULT_INVALIDATE_RETRY_DELAY_SECONDS

    def classify(self, raw_code: RawDisconnectCode) -> DisconnectVerdict:
        """Classifica um código de fechamento. Função pura, nunca levanta."""
        code = normalize_code(raw_code)

        if is_logged_out(code):
            return DisconnectVerdict(
                cause=DisconnectCause.LOGGED_OUT,
                action=RecoveryAction.NO_RETRY,
                raw_code=raw_code,
            )

        if code == SESSION_REJECTED_CODE:
            return DisconnectVerdict(
                cause=DisconnectCause.RATE_LIMITED,
                action=RecoveryAction.INVALIDATE_AND_RETRY_AFTER,
                delay_seconds=self.invalidate_retry_delay_seconds,
                raw_code=raw_code,
            )

        cause = DisconnectCause.UNKNOWN if code is None else DisconnectCause.TRANSIENT
        return DisconnectVerdict(
            cause=cause,
            action=RecoveryAction.RETRY_AFTER,
            delay_seconds=self.retry_delay_seconds,
            raw_code=raw_code,
        )


DEFAULT_POLICY = DisconnectPolicy()


def classify(raw_code: RawDisconnectCode) -> DisconnectVerdict:
    """Classifica com a política de referência (5s / 60s)."""
    return DEFAULT_POLICY.classify(raw_code)
