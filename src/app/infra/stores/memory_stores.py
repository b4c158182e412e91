"""Stores em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.infra.stores.file_credential_store import as_blob, validate_credential_key
from app.protocols.credential_store import CredentialStoreProtocol

if TYPE_CHECKING:
    from app.protocols.credential_store import Credentials


class MemoryCredentialStore(CredentialStoreProtocol):
    """Store de credenciais em memória — apenas para dev/test.

    A validação de chaves é a mesma do FileCredentialStore; `save`
    valida tudo antes de alterar o conjunto.
    """

    def __init__(self, initial: Credentials | None = None) -> None:
        self._store: dict[str, bytes] = {}
        self.save_calls = 0
        self.invalidate_calls = 0
        if initial:
            self.save(initial)
            self.save_calls = 0

    def load(self) -> dict[str, bytes]:
        """Retorna cópia das credenciais."""
        return dict(self._store)

    def save(self, credentials: Credentials) -> None:
        """Adiciona/substitui credenciais atomicamente."""
        staged = {
            validate_credential_key(key): as_blob(value)
            for key, value in credentials.items()
        }
        self._store.update(staged)
        self.save_calls += 1

    def invalidate(self) -> None:
        """Apaga tudo. Idempotente."""
        self._store.clear()
        self.invalidate_calls += 1

    def count(self) -> int:
        return len(self._store)
