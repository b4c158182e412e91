"""Testes do StatusPublisher."""

from __future__ import annotations

import threading

import pytest

from app.lifecycle import PairingChallenge, StatusPublisher, StatusSnapshot
from fsm import ConnectionStatus


class TestStatusPublisher:
    def test_read_returns_initial_snapshot(self) -> None:
        initial = StatusSnapshot(state=ConnectionStatus.STARTING)
        publisher = StatusPublisher(initial)
        assert publisher.read() is initial
        assert publisher.version == 0

    def test_update_replaces_whole_snapshot(self) -> None:
        publisher = StatusPublisher()
        first = publisher.read()
        new = StatusSnapshot(state=ConnectionStatus.CONNECTED, socket_initialized=True)

        publisher.update(new)

        assert publisher.read() is new
        assert first.state == ConnectionStatus.IDLE
        assert publisher.version == 1

    def test_evolve_copies_and_touches_timestamp(self) -> None:
        publisher = StatusPublisher()
        before = publisher.read()

        after = publisher.evolve(state=ConnectionStatus.STARTING, last_error="x")

        assert after is publisher.read()
        assert after.last_error == "x"
        assert after.updated_at >= before.updated_at
        assert before.state == ConnectionStatus.IDLE

    def test_inconsistent_evolve_publishes_nothing(self) -> None:
        publisher = StatusPublisher()
        with pytest.raises(ValueError):
            publisher.evolve(
                state=ConnectionStatus.CONNECTED,
                pairing_challenge=PairingChallenge(token="t"),
            )
        assert publisher.read().state == ConnectionStatus.IDLE
        assert publisher.version == 0

    def test_concurrent_readers_see_consistent_snapshots(self) -> None:
        publisher = StatusPublisher()
        challenge = PairingChallenge(token="t")
        errors: list[str] = []
        done = threading.Event()

        def _reader() -> None:
            while not done.is_set():
                snapshot = publisher.read()
                if snapshot.state == ConnectionStatus.CONNECTED and snapshot.pairing_challenge:
                    errors.append("connected_with_challenge")

        readers = [threading.Thread(target=_reader) for _ in range(4)]
        for reader in readers:
            reader.start()
        for _ in range(500):
            publisher.evolve(
                state=ConnectionStatus.AWAITING_PAIRING, pairing_challenge=challenge
            )
            publisher.evolve(state=ConnectionStatus.CONNECTED, pairing_challenge=None)
        done.set()
        for reader in readers:
            reader.join()

        assert errors == []
        assert publisher.version == 1000
