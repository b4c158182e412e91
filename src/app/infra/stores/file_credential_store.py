"""File Credential Store — credenciais da sessão em um diretório local.

Cada credencial é um arquivo cujo nome é a identidade estável do blob
(ex: `creds.json`, `app-state-sync-key-AAAA.json`). A escrita é feita
em duas fases: todos os blobs são gravados em arquivos temporários
ocultos e só então renomeados sobre os definitivos. Se uma renomeação
falhar no meio do conjunto, as chaves já trocadas são restauradas ao
conteúdo anterior.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from app.protocols.credential_store import CredentialStoreProtocol
from utils.errors import CredentialIOError

if TYPE_CHECKING:
    from app.protocols.credential_store import Credentials

logger = logging.getLogger(__name__)

# Arquivos temporários começam com "." e nunca são lidos como credencial
TEMP_PREFIX = "."
TEMP_SUFFIX = ".tmp"


def validate_credential_key(key: str) -> str:
    """Valida que a chave é um nome de arquivo seguro.

    Raises:
        CredentialIOError: Se a chave puder escapar do diretório.
    """
    if not isinstance(key, str) or not key:
        raise CredentialIOError("Chave de credencial vazia")
    if key in (".", "..") or key.startswith(TEMP_PREFIX):
        raise CredentialIOError(f"Chave de credencial inválida: {key!r}")
    if "/" in key or "\\" in key or "\x00" in key:
        raise CredentialIOError(f"Chave de credencial inválida: {key!r}")
    return key


def as_blob(value: bytes | str) -> bytes:
    """Converte o valor da credencial para bytes."""
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise CredentialIOError(f"Tipo de credencial não suportado: {type(value).__name__}")


class FileCredentialStore(CredentialStoreProtocol):
    """Store de credenciais em diretório (um arquivo por blob).

    Args:
        directory: Diretório das credenciais (criado sob demanda)
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def ensure_directory(self) -> None:
        """Cria o diretório se ainda não existir."""
        try:
            if not self._directory.exists():
                logger.info("credential_folder_created", extra={"path": str(self._directory)})
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CredentialIOError(f"Não foi possível criar {self._directory}: {exc}") from exc

    def _entries(self) -> list[Path]:
        if not self._directory.exists():
            return []
        try:
            return sorted(
                entry
                for entry in self._directory.iterdir()
                if entry.is_file() and not entry.name.startswith(TEMP_PREFIX)
            )
        except OSError as exc:
            raise CredentialIOError(f"Falha ao listar {self._directory}: {exc}") from exc

    def load(self) -> dict[str, bytes]:
        """Lê todas as credenciais; dict vazio em primeira execução."""
        credentials: dict[str, bytes] = {}
        for entry in self._entries():
            try:
                credentials[entry.name] = entry.read_bytes()
            except OSError as exc:
                raise CredentialIOError(f"Falha ao ler {entry.name}: {exc}") from exc
        return credentials

    def save(self, credentials: Credentials) -> None:
        """Grava credenciais de forma atômica (write-then-rename).

        Se uma renomeação falhar no meio do conjunto, as chaves já
        substituídas voltam ao conteúdo anterior.
        """
        if not credentials:
            return
        self.ensure_directory()

        staged: list[tuple[str, Path]] = []
        try:
            for key, value in credentials.items():
                validate_credential_key(key)
                staged.append((key, self._stage(key, as_blob(value))))
            previous = self._snapshot(key for key, _ in staged)
        except (OSError, CredentialIOError) as exc:
            self._discard(path for _, path in staged)
            if isinstance(exc, CredentialIOError):
                raise
            raise CredentialIOError(f"Falha ao gravar credenciais: {exc}") from exc

        for position, (key, temp_path) in enumerate(staged):
            try:
                os.replace(temp_path, self._directory / key)
            except OSError as exc:
                self._discard(path for _, path in staged[position:])
                self._rollback([key for key, _ in staged[:position]], previous)
                raise CredentialIOError(f"Falha ao substituir {key}: {exc}") from exc

        logger.debug("credentials_persisted", extra={"blob_count": len(staged)})

    def _snapshot(self, keys) -> dict[str, bytes | None]:
        """Conteúdo atual de cada chave (None se ainda não existe)."""
        previous: dict[str, bytes | None] = {}
        for key in keys:
            target = self._directory / key
            try:
                previous[key] = target.read_bytes() if target.exists() else None
            except OSError as exc:
                raise CredentialIOError(f"Falha ao ler {key}: {exc}") from exc
        return previous

    def _rollback(self, keys: list[str], previous: dict[str, bytes | None]) -> None:
        for key in keys:
            target = self._directory / key
            try:
                blob = previous[key]
                if blob is None:
                    target.unlink(missing_ok=True)
                else:
                    os.replace(self._stage(key, blob), target)
            except OSError:
                logger.error("credential_rollback_failed", extra={"file": key})
        if keys:
            logger.warning("credentials_rolled_back", extra={"blob_count": len(keys)})

    def _stage(self, key: str, blob: bytes) -> Path:
        fd, temp_name = tempfile.mkstemp(
            dir=self._directory,
            prefix=f"{TEMP_PREFIX}{key}.",
            suffix=TEMP_SUFFIX,
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(blob)
                handle.flush()
                os.fsync(handle.fileno())
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
        return Path(temp_name)

    @staticmethod
    def _discard(paths) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.warning("credential_temp_cleanup_failed", extra={"file": path.name})

    def invalidate(self) -> None:
        """Remove todos os arquivos do diretório (inclusive temporários)."""
        if not self._directory.exists():
            return
        removed = 0
        try:
            for entry in self._directory.iterdir():
                if entry.is_file() or entry.is_symlink():
                    entry.unlink(missing_ok=True)
                    removed += 1
        except OSError as exc:
            raise CredentialIOError(f"Falha ao invalidar credenciais: {exc}") from exc
        logger.info("credential_folder_cleared", extra={"removed": removed})

    def count(self) -> int:
        return len(self._entries())
