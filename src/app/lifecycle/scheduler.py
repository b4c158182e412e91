"""Agendador de timers sobre o event loop asyncio."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class AsyncioTimerScheduler:
    """Agenda callbacks via `loop.call_later`.

    O loop é resolvido na primeira chamada, dentro do loop em execução.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(
        self,
        delay: float,
        callback: Callable[[], None],
    ) -> asyncio.TimerHandle:
        if delay < 0:
            raise ValueError(f"delay deve ser >= 0, recebido: {delay}")
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)
