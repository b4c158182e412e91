"""Status Publisher — projeção atômica do estado do supervisor.

Leitores apenas obtêm a referência do snapshot corrente (objeto
imutável); escrita troca a referência sob um lock leve que nunca é
mantido durante I/O.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from app.lifecycle.models import StatusSnapshot


class StatusPublisher:
    """Guarda o snapshot mais recente para observadores externos."""

    __slots__ = ("_lock", "_snapshot", "_version")

    def __init__(self, initial: StatusSnapshot | None = None) -> None:
        self._snapshot = initial or StatusSnapshot()
        self._lock = threading.Lock()
        self._version = 0

    def read(self) -> StatusSnapshot:
        """Retorna o snapshot corrente sem bloquear."""
        return self._snapshot

    @property
    def version(self) -> int:
        """Número de publicações realizadas."""
        return self._version

    def update(self, snapshot: StatusSnapshot) -> None:
        """Substitui o snapshot por inteiro (chamado só pelo supervisor)."""
        with self._lock:
            self._snapshot = snapshot
            self._version += 1

    def evolve(self, **changes: Any) -> StatusSnapshot:
        """Publica uma cópia do snapshot atual com os campos alterados.

        A validação do snapshot acontece antes da troca: um conjunto de
        campos inconsistente levanta ValueError e nada é publicado.
        """
        changes.setdefault("updated_at", datetime.now(UTC))
        with self._lock:
            snapshot = replace(self._snapshot, **changes)
            self._snapshot = snapshot
            self._version += 1
        return snapshot
