"""Protocolos de agendamento de timers canceláveis."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol


class TimerHandleProtocol(Protocol):
    """Timer agendado que pode ser cancelado antes de disparar."""

    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class TimerSchedulerProtocol(Protocol):
    """Agenda callbacks com atraso (relógio real ou simulado)."""

    def call_later(
        self,
        delay: float,
        callback: Callable[[], None],
    ) -> TimerHandleProtocol: ...
