"""Eventos processados pelo loop do supervisor.

Dois grupos, consumidos pela mesma fila em ordem de chegada:
- SessionEvent: emitidos pelo Session Handle externo
- Comandos internos: start, restart agendado, timeout de pareamento, repair
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from app.lifecycle.models import RawDisconnectCode


@dataclass(frozen=True, slots=True)
class CredentialsChanged:
    """Handle reportou credenciais atualizadas."""

    credentials: Mapping[str, bytes] = field(repr=False)


@dataclass(frozen=True, slots=True)
class PairingChallengeIssued:
    """Handle emitiu um pairing challenge."""

    token: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class ConnectionOpened:
    """Conexão autenticada com sucesso."""


@dataclass(frozen=True, slots=True)
class ConnectionClosed:
    """Conexão fechada; código bruto pode estar ausente."""

    raw_code: RawDisconnectCode = None


SessionEvent = CredentialsChanged | PairingChallengeIssued | ConnectionOpened | ConnectionClosed


@dataclass(frozen=True, slots=True)
class StartRequested:
    trigger: str = "supervisor_start"


@dataclass(frozen=True, slots=True)
class RestartDue:
    """Timer de restart disparou."""

    delay_seconds: float


@dataclass(frozen=True, slots=True)
class PairingTimeoutElapsed:
    """Timer de espera pelo challenge disparou."""

    generation: int


@dataclass(frozen=True, slots=True)
class RepairRequested:
    """Comando externo de re-pareamento."""

