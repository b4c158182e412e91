"""Protocolo de persistência de credenciais da sessão."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping

# Blobs opacos indexados por identidade estável (ex: "creds.json")
Credentials = Mapping[str, bytes]


class CredentialStoreProtocol(ABC):
    """Contrato mínimo para armazenamento de credenciais.

    Implementações devem ser rápidas e limitadas: são chamadas no
    caminho de processamento de eventos do supervisor.
    """

    @abstractmethod
    def load(self) -> dict[str, bytes]:
        """Retorna credenciais persistidas; dict vazio se não houver."""

    @abstractmethod
    def save(self, credentials: Credentials) -> None:
        """Persiste credenciais de forma atômica (substitui ou adiciona)."""

    @abstractmethod
    def invalidate(self) -> None:
        """Remove todo o material de credencial. Idempotente."""

    @abstractmethod
    def count(self) -> int:
        """Quantidade de blobs persistidos."""
