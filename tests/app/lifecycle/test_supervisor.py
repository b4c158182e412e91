"""Testes do LifecycleSupervisor com relógio simulado.

O handle fake é dirigido manualmente e o ManualTimerScheduler só
dispara timers quando o teste avança o relógio.
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from app.lifecycle import (
    NOT_CONNECTED,
    PAIRING_TIMEOUT_MESSAGE,
    SEND_FAILED,
    DisconnectCause,
    DisconnectPolicy,
    LifecycleSupervisor,
    RecoveryAction,
    StatusPublisher,
)
from fsm import ConnectionStatus
from tests.fakes.fake_session import FakeSessionFactory
from tests.fakes.manual_scheduler import ManualTimerScheduler
from tests.fakes.renderers import BrokenRenderer, StubRenderer
from tests.fakes.stores import FlakyCredentialStore
from utils.errors import SendFailure, SessionOpenError


class Harness:
    """Supervisor montado com colaboradores fake."""

    def __init__(
        self,
        renderer: object | None = None,
        initial: dict | None = None,
        publisher: StatusPublisher | None = None,
    ) -> None:
        self.factory = FakeSessionFactory()
        self.store = FlakyCredentialStore(initial)
        self.scheduler = ManualTimerScheduler()
        self.renderer = renderer or StubRenderer()
        self.supervisor = LifecycleSupervisor(
            self.factory,
            self.store,
            scheduler=self.scheduler,
            renderer=self.renderer,
            publisher=publisher,
        )

    @property
    def state(self) -> ConnectionStatus:
        return self.supervisor.state

    @property
    def snapshot(self):
        return self.supervisor.get_status()

    async def settle(self) -> None:
        await self.supervisor.settle()

    async def start(self) -> None:
        await self.supervisor.start()
        await self.settle()

    async def connect(self) -> None:
        await self.start()
        self.factory.latest.emit_open()
        await self.settle()

    async def advance(self, seconds: float) -> None:
        self.scheduler.advance(seconds)
        await self.settle()


@pytest.fixture
def harness() -> Harness:
    return Harness()


class RecordingPublisher(StatusPublisher):
    """Guarda todos os snapshots publicados."""

    def __init__(self) -> None:
        super().__init__()
        self.published = []

    def evolve(self, **changes):
        snapshot = super().evolve(**changes)
        self.published.append(snapshot)
        return snapshot


def _states(supervisor: LifecycleSupervisor) -> list[ConnectionStatus]:
    return [t.to_state for t in supervisor.machine.history]


class TestFreshStart:
    """Início sem credenciais até o pairing challenge."""

    @pytest.mark.asyncio
    async def test_fresh_start_reaches_awaiting_pairing(
        self, harness: Harness, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.ERROR)
        await harness.start()

        assert harness.state == ConnectionStatus.STARTING
        assert harness.snapshot.socket_initialized is True
        assert harness.factory.handles[0].credentials == {}
        assert harness.scheduler.pending_delays == [10.0]

        harness.factory.latest.emit_challenge("2@token-a")
        await harness.settle()

        snapshot = harness.snapshot
        assert snapshot.state == ConnectionStatus.AWAITING_PAIRING
        assert snapshot.pairing_challenge is not None
        assert snapshot.pairing_challenge.token == "2@token-a"
        assert snapshot.pairing_challenge.image_data_url.startswith("data:image/svg+xml")
        assert snapshot.display_status == "READY TO SCAN"
        assert _states(harness.supervisor) == [
            ConnectionStatus.STARTING,
            ConnectionStatus.AWAITING_PAIRING,
        ]
        # Timer do challenge cancelado: nenhum diagnóstico
        assert harness.scheduler.pending == []
        await harness.advance(30)
        assert harness.snapshot.last_error is None
        assert not any(r.getMessage() == "pairing_challenge_timeout" for r in caplog.records)

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_challenge_refresh_replaces_token(self, harness: Harness) -> None:
        await harness.start()
        harness.factory.latest.emit_challenge("2@first")
        harness.factory.latest.emit_challenge("2@second")
        await harness.settle()

        assert harness.state == ConnectionStatus.AWAITING_PAIRING
        assert harness.snapshot.pairing_challenge.token == "2@second"
        assert harness.renderer.rendered == ["2@first", "2@second"]

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_renderer_failure_keeps_raw_challenge(self) -> None:
        harness = Harness(renderer=BrokenRenderer())
        await harness.start()
        harness.factory.latest.emit_challenge("2@raw")
        await harness.settle()

        challenge = harness.snapshot.pairing_challenge
        assert harness.state == ConnectionStatus.AWAITING_PAIRING
        assert challenge is not None
        assert challenge.is_rendered is False

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_stored_credentials_are_passed_to_factory(self) -> None:
        harness = Harness(initial={"creds.json": b"{}"})
        await harness.connect()

        assert harness.factory.latest.credentials == {"creds.json": b"{}"}
        assert harness.state == ConnectionStatus.CONNECTED
        assert harness.snapshot.display_status == "CONNECTED"

        await harness.supervisor.stop()


class TestPairingTimeout:
    """Timer de espera pelo pairing challenge."""

    @pytest.mark.asyncio
    async def test_timeout_logs_diagnostic_without_transition(
        self, harness: Harness, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.ERROR)
        await harness.start()
        await harness.advance(10)

        assert harness.state == ConnectionStatus.STARTING
        assert harness.snapshot.last_error == PAIRING_TIMEOUT_MESSAGE
        assert any(r.getMessage() == "pairing_challenge_timeout" for r in caplog.records)
        assert len(harness.supervisor.machine.history) == 1

        # Challenge tardio limpa o erro
        harness.factory.latest.emit_challenge()
        await harness.settle()
        assert harness.state == ConnectionStatus.AWAITING_PAIRING
        assert harness.snapshot.last_error is None

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_empty_challenge_keeps_timer_running(
        self, harness: Harness, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Challenge sem token é descartado e o diagnóstico ainda dispara."""
        caplog.set_level(logging.WARNING)
        await harness.start()

        harness.factory.latest.emit_challenge("")
        await harness.settle()

        assert harness.state == ConnectionStatus.STARTING
        assert harness.snapshot.pairing_challenge is None
        assert any(r.getMessage() == "pairing_challenge_rejected" for r in caplog.records)
        assert not any(r.getMessage() == "supervisor_event_failed" for r in caplog.records)

        await harness.advance(10)

        assert harness.state == ConnectionStatus.STARTING
        assert harness.snapshot.last_error == PAIRING_TIMEOUT_MESSAGE

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_connection_open_cancels_timer(self, harness: Harness) -> None:
        await harness.connect()
        await harness.advance(10)

        assert harness.state == ConnectionStatus.CONNECTED
        assert harness.snapshot.last_error is None

        await harness.supervisor.stop()


class TestDisconnects:
    """Fechamentos de conexão e política de recuperação."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [401, "401", "loggedOut"])
    async def test_logged_out_never_schedules_restart(
        self, harness: Harness, code: int | str
    ) -> None:
        await harness.connect()
        harness.factory.latest.emit_close(code)
        await harness.settle()

        assert harness.state == ConnectionStatus.IDLE
        assert harness.scheduler.pending == []
        assert harness.supervisor.has_pending_restart is False
        assert _states(harness.supervisor)[-2:] == [
            ConnectionStatus.STOPPED,
            ConnectionStatus.IDLE,
        ]

        await harness.advance(3600)
        assert harness.factory.open_calls == 1
        assert harness.state == ConnectionStatus.IDLE

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_405_invalidates_and_restarts_after_60_seconds(self) -> None:
        harness = Harness(initial={"creds.json": b"{}"})
        await harness.connect()
        first = harness.factory.latest

        first.emit_close(405)
        await harness.settle()

        snapshot = harness.snapshot
        assert harness.state == ConnectionStatus.STOPPED
        assert snapshot.verdict.action == RecoveryAction.INVALIDATE_AND_RETRY_AFTER
        assert snapshot.verdict.cause == DisconnectCause.RATE_LIMITED
        assert snapshot.display_status == "Stopped (Reason: 405)"
        assert snapshot.last_error == "Connection closed with code: 405"
        assert snapshot.socket_initialized is False
        assert harness.store.count() == 0
        assert first.closed is True
        assert harness.scheduler.pending_delays == [60.0]

        await harness.advance(59)
        assert harness.state == ConnectionStatus.STOPPED

        await harness.advance(1)
        assert harness.state == ConnectionStatus.STARTING
        assert harness.supervisor.generation == 2
        assert harness.factory.latest.credentials == {}

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [None, 428, 500, "timeout"])
    async def test_other_codes_retry_after_5_seconds(
        self, harness: Harness, code: int | str | None
    ) -> None:
        await harness.connect()
        harness.factory.latest.emit_close(code)
        await harness.settle()

        assert harness.state == ConnectionStatus.STOPPED
        assert harness.snapshot.verdict.action == RecoveryAction.RETRY_AFTER
        assert harness.scheduler.pending_delays == [5.0]
        assert harness.store.invalidate_calls == 0

        await harness.advance(4.9)
        assert harness.factory.open_calls == 1

        await harness.advance(0.1)
        assert harness.factory.open_calls == 2
        assert harness.state == ConnectionStatus.STARTING
        # Erro persiste até challenge ou open
        assert harness.snapshot.last_error == f"Connection closed with code: {code}"

        harness.factory.latest.emit_open()
        await harness.settle()
        assert harness.snapshot.last_error is None

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_repeated_failures_keep_flat_delay(self, harness: Harness) -> None:
        await harness.start()
        for _ in range(3):
            harness.factory.latest.emit_close(503)
            await harness.settle()
            assert harness.scheduler.pending_delays == [5.0]
            await harness.advance(5)

        assert harness.factory.open_calls == 4
        assert harness.supervisor.generation == 4

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_configured_policy_delays(self) -> None:
        factory = FakeSessionFactory()
        scheduler = ManualTimerScheduler()
        supervisor = LifecycleSupervisor(
            factory,
            FlakyCredentialStore(),
            scheduler=scheduler,
            policy=DisconnectPolicy(retry_delay_seconds=1, invalidate_retry_delay_seconds=2),
            pairing_timeout_seconds=3,
        )
        await supervisor.start()
        await supervisor.settle()
        assert scheduler.pending_delays == [3]

        factory.latest.emit_close(405)
        await supervisor.settle()
        assert scheduler.pending_delays == [2]

        await supervisor.stop()


class TestSingleSession:
    """Nunca há dois handles abertos e eventos antigos são ignorados."""

    @pytest.mark.asyncio
    async def test_previous_handle_closed_before_new_open(self, harness: Harness) -> None:
        await harness.connect()
        for _ in range(3):
            harness.factory.latest.emit_close(428)
            await harness.settle()
            await harness.advance(5)
            assert len(harness.factory.open_handles) == 1

        assert all(handle.close_calls == 1 for handle in harness.factory.handles[:-1])

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_stale_generation_events_are_ignored(self, harness: Harness) -> None:
        await harness.connect()
        old = harness.factory.latest
        old.emit_close(428)
        await harness.settle()
        await harness.advance(5)
        assert harness.state == ConnectionStatus.STARTING

        old.emit_open()
        old.emit_challenge("2@stale")
        old.emit_close(401)
        old.emit_credentials({"creds.json": b"stale"})
        await harness.settle()

        assert harness.state == ConnectionStatus.STARTING
        assert harness.snapshot.pairing_challenge is None
        assert harness.store.count() == 0

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_events_from_other_thread_are_delivered(self, harness: Harness) -> None:
        await harness.start()
        await asyncio.to_thread(harness.factory.latest.emit_open)
        await harness.settle()

        assert harness.state == ConnectionStatus.CONNECTED

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_close_failure_is_tolerated(self, harness: Harness) -> None:
        await harness.connect()
        harness.factory.latest.close_error = RuntimeError("socket já fechado")
        harness.factory.latest.emit_close(428)
        await harness.settle()

        assert harness.state == ConnectionStatus.STOPPED
        assert harness.supervisor.has_active_session is False
        assert harness.scheduler.pending_delays == [5.0]

        await harness.supervisor.stop()


class TestCredentials:
    """Persistência de credenciais e falhas do store."""

    @pytest.mark.asyncio
    async def test_credentials_changed_are_saved(self, harness: Harness) -> None:
        await harness.start()
        harness.factory.latest.emit_credentials({"creds.json": b"v1", "pre-key-1.json": b"k"})
        harness.factory.latest.emit_credentials({"creds.json": b"v2"})
        await harness.settle()

        assert harness.store.load() == {"creds.json": b"v2", "pre-key-1.json": b"k"}

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_unreadable_store_is_fatal(self, harness: Harness) -> None:
        harness.store.fail_load = True
        await harness.start()

        assert harness.state == ConnectionStatus.FATAL_ERROR
        assert "Credential store unreadable" in harness.snapshot.last_error
        assert harness.snapshot.display_status == "Startup Error"
        assert harness.factory.open_calls == 0
        assert harness.scheduler.pending == []

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_unwritable_store_during_session_is_fatal(self, harness: Harness) -> None:
        await harness.connect()
        harness.store.fail_save = True
        harness.factory.latest.emit_credentials({"creds.json": b"x"})
        await harness.settle()

        assert harness.state == ConnectionStatus.FATAL_ERROR
        assert "Credential store unwritable" in harness.snapshot.last_error
        assert harness.factory.latest.closed is True

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_failed_invalidation_is_fatal(self, harness: Harness) -> None:
        await harness.connect()
        harness.store.fail_invalidate = True
        harness.factory.latest.emit_close(405)
        await harness.settle()

        assert harness.state == ConnectionStatus.FATAL_ERROR
        assert harness.scheduler.pending == []

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_session_open_failure_is_fatal_without_retry(self, harness: Harness) -> None:
        harness.factory.open_error = SessionOpenError("backend indisponível")
        await harness.start()

        assert harness.state == ConnectionStatus.FATAL_ERROR
        assert harness.snapshot.last_error == "backend indisponível"
        await harness.advance(3600)
        assert harness.factory.open_calls == 1

        await harness.supervisor.stop()


class TestRepair:
    """Comando repair: apaga credenciais e reinicia o pareamento."""

    @pytest.mark.asyncio
    async def test_repair_while_connected(self) -> None:
        harness = Harness(initial={"creds.json": b"{}"})
        await harness.connect()
        old = harness.factory.latest

        await harness.supervisor.repair()
        await harness.settle()

        assert old.closed is True
        assert harness.store.count() == 0
        assert harness.state == ConnectionStatus.STARTING
        assert harness.supervisor.generation == 2
        assert harness.factory.latest.credentials == {}
        assert ConnectionStatus.IDLE in _states(harness.supervisor)

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_repair_recovers_from_fatal_error(self, harness: Harness) -> None:
        harness.factory.open_error = SessionOpenError("boom")
        await harness.start()
        assert harness.state == ConnectionStatus.FATAL_ERROR

        harness.factory.open_error = None
        await harness.supervisor.repair()
        await harness.settle()

        assert harness.state == ConnectionStatus.STARTING
        assert harness.store.invalidate_calls == 1

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_repair_cancels_pending_restart(self, harness: Harness) -> None:
        await harness.connect()
        harness.factory.latest.emit_close(428)
        await harness.settle()
        assert harness.supervisor.has_pending_restart is True

        await harness.supervisor.repair()
        await harness.settle()
        await harness.advance(5)

        assert harness.factory.open_calls == 2
        assert harness.state == ConnectionStatus.STARTING

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_repair_requires_running_supervisor(self, harness: Harness) -> None:
        with pytest.raises(RuntimeError):
            await harness.supervisor.repair()


class TestStop:
    """Encerramento do supervisor."""

    @pytest.mark.asyncio
    async def test_stop_closes_handle_and_cancels_timers(self, harness: Harness) -> None:
        await harness.connect()
        harness.factory.latest.emit_close(428)
        await harness.settle()
        assert harness.supervisor.has_pending_restart is True

        await harness.supervisor.stop()

        assert harness.state == ConnectionStatus.IDLE
        assert harness.scheduler.pending == []
        assert harness.supervisor.is_running is False
        assert harness.factory.open_handles == []

    @pytest.mark.asyncio
    async def test_stop_while_connected(self, harness: Harness) -> None:
        await harness.connect()
        handle = harness.factory.latest

        await harness.supervisor.stop()
        await harness.supervisor.stop()

        assert handle.close_calls == 1
        assert harness.state == ConnectionStatus.IDLE
        assert harness.snapshot.socket_initialized is False

        with pytest.raises(RuntimeError):
            await harness.supervisor.start()

    @pytest.mark.asyncio
    async def test_events_after_stop_are_dropped(self, harness: Harness) -> None:
        await harness.connect()
        handle = harness.factory.latest
        await harness.supervisor.stop()

        handle.emit_close(428)
        await harness.advance(60)

        assert harness.state == ConnectionStatus.IDLE
        assert harness.factory.open_calls == 1


class TestRequestSend:
    """Envio outbound: at-most-once e sem exceções."""

    @pytest.mark.asyncio
    async def test_send_when_not_connected(self, harness: Harness) -> None:
        await harness.start()
        before = harness.snapshot
        version = harness.supervisor.publisher.version

        result = await harness.supervisor.request_send("5511999999999@s.whatsapp.net", "oi")

        assert result.success is False
        assert result.error_code == NOT_CONNECTED
        assert harness.snapshot is before
        assert harness.supervisor.publisher.version == version
        assert harness.factory.latest.sent == []

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    async def test_send_before_start(self, harness: Harness) -> None:
        result = await harness.supervisor.request_send("x@s.whatsapp.net", "oi")
        assert result.error_code == NOT_CONNECTED

    @pytest.mark.asyncio
    async def test_send_when_connected(self, harness: Harness) -> None:
        await harness.connect()

        result = await harness.supervisor.request_send("5511999999999@s.whatsapp.net", "oi")

        assert result.success is True
        assert result.destination == "5511999999999@s.whatsapp.net"
        assert harness.factory.latest.sent == [("5511999999999@s.whatsapp.net", "oi")]

        await harness.supervisor.stop()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [SendFailure("rejeitado", "x@s.whatsapp.net"), RuntimeError("socket quebrado")],
    )
    async def test_send_failure_is_reported_not_raised(
        self, harness: Harness, error: Exception
    ) -> None:
        await harness.connect()
        harness.factory.latest.send_error = error

        result = await harness.supervisor.request_send("x@s.whatsapp.net", "oi")

        assert result.success is False
        assert result.error_code == SEND_FAILED
        assert harness.state == ConnectionStatus.CONNECTED
        assert harness.factory.latest.sent == []

        await harness.supervisor.stop()


class TestSnapshotConsistency:
    """Nenhum snapshot publicado combina CONNECTED com challenge."""

    @pytest.mark.asyncio
    async def test_published_snapshots_never_mix_connected_and_challenge(self) -> None:
        publisher = RecordingPublisher()
        harness = Harness(publisher=publisher)
        observed = publisher.published

        await harness.start()
        harness.factory.latest.emit_challenge()
        harness.factory.latest.emit_challenge()
        harness.factory.latest.emit_open()
        harness.factory.latest.emit_close(428)
        await harness.settle()
        await harness.advance(5)
        harness.factory.latest.emit_challenge()
        harness.factory.latest.emit_open()
        await harness.settle()

        assert observed
        for snapshot in observed:
            if snapshot.state == ConnectionStatus.CONNECTED:
                assert snapshot.pairing_challenge is None
            if snapshot.pairing_challenge is not None:
                assert snapshot.state == ConnectionStatus.AWAITING_PAIRING

        await harness.supervisor.stop()

    def test_invalid_pairing_timeout(self) -> None:
        with pytest.raises(ValueError):
            LifecycleSupervisor(
                FakeSessionFactory(), FlakyCredentialStore(), pairing_timeout_seconds=0
            )
