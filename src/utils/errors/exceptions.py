"""Exceções do núcleo do bridge para falhas de sessão e persistência."""

from __future__ import annotations


class BridgeError(RuntimeError):
    """Base para falhas do bridge."""


class CredentialIOError(BridgeError):
    """Falha de leitura/escrita no diretório de credenciais."""


class SessionOpenError(BridgeError):
    """Falha ao construir o Session Handle."""


class SessionFactoryConfigError(BridgeError):
    """Session factory ausente ou caminho de import inválido."""


class SendFailure(BridgeError):
    """Session Handle rejeitou um envio outbound."""

    def __init__(self, message: str, destination: str | None = None) -> None:
        super().__init__(message)
        self.destination = destination
