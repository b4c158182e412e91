"""Protocolos do Session Handle (colaborador externo de protocolo).

O núcleo nunca implementa handshake, criptografia ou framing: apenas
abre um handle com as credenciais armazenadas e reage aos eventos
emitidos por ele.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.lifecycle.events import SessionEvent
    from app.protocols.credential_store import Credentials

# Callback fornecido pelo supervisor; pode ser chamado de qualquer thread
EventSink = Callable[["SessionEvent"], None]


class SessionHandleProtocol(Protocol):
    """Uma tentativa de conexão viva com o backend."""

    async def send(self, destination: str, payload: str) -> None:
        """Envia mensagem; levanta exceção se o backend rejeitar."""
        ...

    async def close(self) -> None:
        """Fecha a conexão e cancela inscrições. Deve ser idempotente."""
        ...


class SessionFactoryProtocol(Protocol):
    """Abre Session Handles a partir de credenciais."""

    async def open(
        self,
        credentials: Credentials,
        emit: EventSink,
    ) -> SessionHandleProtocol:
        """Abre um handle que reporta eventos via `emit`."""
        ...
