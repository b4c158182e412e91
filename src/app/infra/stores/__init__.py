"""Stores — implementações concretas de persistência de credenciais.

Módulos disponíveis:
    - file_credential_store: credenciais em diretório local (produção)
    - memory_stores: stores em memória para desenvolvimento/testes
"""

from __future__ import annotations

from app.infra.stores.file_credential_store import (
    FileCredentialStore,
    validate_credential_key,
)
from app.infra.stores.memory_stores import MemoryCredentialStore

__all__ = [
    "FileCredentialStore",
    "MemoryCredentialStore",
    "validate_credential_key",
]
