"""Testes do AsyncioTimerScheduler."""

from __future__ import annotations

import asyncio

import pytest

from app.lifecycle import AsyncioTimerScheduler


class TestAsyncioTimerScheduler:
    @pytest.mark.asyncio
    async def test_callback_fires_after_delay(self) -> None:
        fired = asyncio.Event()
        scheduler = AsyncioTimerScheduler()

        scheduler.call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_cancelled_callback_never_fires(self) -> None:
        calls: list[int] = []
        scheduler = AsyncioTimerScheduler(asyncio.get_running_loop())

        handle = scheduler.call_later(0.01, lambda: calls.append(1))
        handle.cancel()
        await asyncio.sleep(0.05)

        assert handle.cancelled() is True
        assert calls == []

    def test_negative_delay_rejected(self) -> None:
        with pytest.raises(ValueError):
            AsyncioTimerScheduler().call_later(-1, lambda: None)
