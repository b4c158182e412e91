"""Lifecycle Supervisor — ciclo de vida da sessão com o backend de mensagens.

Responsabilidades:
- Abrir o Session Handle com as credenciais persistidas
- Reagir aos eventos do handle (challenge, open, close, credenciais)
- Classificar desconexões e aplicar a política de recuperação
- Publicar o StatusSnapshot a cada transição

Todos os eventos passam por uma única fila consumida por um único loop,
então o processamento é serializado e nunca há dois handles abertos.
Timers (restart e espera pelo challenge) são explícitos e canceláveis.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from app.lifecycle.classifier import DEFAULT_POLICY, DisconnectPolicy
from app.lifecycle.events import (
    ConnectionClosed,
    ConnectionOpened,
    CredentialsChanged,
    PairingChallengeIssued,
    PairingTimeoutElapsed,
    RepairRequested,
    RestartDue,
    StartRequested,
)
from app.lifecycle.models import (
    NOT_CONNECTED,
    SEND_FAILED,
    PairingChallenge,
    RecoveryAction,
    SendResult,
    StatusSnapshot,
)
from app.lifecycle.scheduler import AsyncioTimerScheduler
from app.lifecycle.status import StatusPublisher
from app.observability import (
    bind_session_generation,
    get_correlation_id,
    record_latency,
    record_reconnect,
    record_send,
)
from config.logging import log_diagnostic, log_fallback
from fsm import ConnectionStateMachine, ConnectionStatus
from utils.errors import CredentialIOError, SendFailure, SessionOpenError

if TYPE_CHECKING:
    from app.lifecycle.events import SessionEvent
    from app.protocols import (
        CredentialStoreProtocol,
        EventSink,
        PairingRendererProtocol,
        SessionFactoryProtocol,
        SessionHandleProtocol,
        TimerHandleProtocol,
        TimerSchedulerProtocol,
    )

logger = logging.getLogger(__name__)

DEFAULT_PAIRING_TIMEOUT_SECONDS = 10.0
PAIRING_TIMEOUT_MESSAGE = "QR code timeout - possible network/firewall issue"
PAIRING_TIMEOUT_HINTS = (
    "Server IP is blocked by WhatsApp",
    "Network/firewall blocking WhatsApp servers",
    "Protocol library needs updating",
)

# Sentinela de parada do loop
_STOP = object()


class LifecycleSupervisor:
    """Supervisor de reconexão de uma única sessão lógica.

    Args:
        session_factory: Abre Session Handles (colaborador externo)
        credential_store: Persistência de credenciais
        publisher: Status Publisher (cria um novo se None)
        scheduler: Agendador de timers (asyncio se None)
        renderer: Renderizador opcional do pairing challenge
        policy: Política de classificação de desconexões
        pairing_timeout_seconds: Espera máxima pelo primeiro challenge
        name: Identificador para logs
    """

    def __init__(
        self,
        session_factory: SessionFactoryProtocol,
        credential_store: CredentialStoreProtocol,
        *,
        publisher: StatusPublisher | None = None,
        scheduler: TimerSchedulerProtocol | None = None,
        renderer: PairingRendererProtocol | None = None,
        policy: DisconnectPolicy = DEFAULT_POLICY,
        pairing_timeout_seconds: float = DEFAULT_PAIRING_TIMEOUT_SECONDS,
        name: str = "bridge",
    ) -> None:
        if pairing_timeout_seconds <= 0:
            raise ValueError("pairing_timeout_seconds deve ser > 0")
        self._factory = session_factory
        self._store = credential_store
        self._publisher = publisher or StatusPublisher()
        self._scheduler: TimerSchedulerProtocol = scheduler or AsyncioTimerScheduler()
        self._renderer = renderer
        self._policy = policy
        self._pairing_timeout_seconds = pairing_timeout_seconds
        self._machine = ConnectionStateMachine(name=name)

        self._queue: asyncio.Queue[tuple[int | None, Any]] = asyncio.Queue()
        self._loop_task: asyncio.Task[None] | None = None
        self._event_loop: asyncio.AbstractEventLoop | None = None
        self._handle: SessionHandleProtocol | None = None
        self._restart_timer: TimerHandleProtocol | None = None
        self._pairing_timer: TimerHandleProtocol | None = None
        self._closed = False

    # ──────────────────────────────────────────────────────────────
    # Leitura
    # ──────────────────────────────────────────────────────────────

    @property
    def state(self) -> ConnectionStatus:
        return self._machine.current_state

    @property
    def generation(self) -> int:
        return self._machine.generation

    @property
    def machine(self) -> ConnectionStateMachine:
        return self._machine

    @property
    def publisher(self) -> StatusPublisher:
        return self._publisher

    @property
    def has_active_session(self) -> bool:
        """Contexto dos guards: existe handle ainda não fechado."""
        return self._handle is not None

    @property
    def has_pending_restart(self) -> bool:
        return self._restart_timer is not None

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def get_status(self) -> StatusSnapshot:
        """Snapshot corrente; nunca bloqueia o loop."""
        return self._publisher.read()

    # ──────────────────────────────────────────────────────────────
    # Comandos externos
    # ──────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Inicia o loop de eventos e solicita a primeira sessão."""
        if self._closed:
            raise RuntimeError("supervisor já foi parado")
        if self.is_running:
            return
        self._event_loop = asyncio.get_running_loop()
        self._loop_task = asyncio.create_task(
            self._run(), name=f"lifecycle-{self._machine.name}"
        )
        self._enqueue(None, StartRequested())

    async def repair(self) -> None:
        """Apaga credenciais e força um novo fluxo de pareamento."""
        if not self.is_running:
            raise RuntimeError("supervisor não está em execução")
        self._enqueue(None, RepairRequested())

    async def stop(self, timeout_seconds: float = 10.0) -> None:
        """Cancela timers, fecha o handle ativo e encerra o loop."""
        if self._loop_task is None or self._closed:
            self._closed = True
            return
        self._enqueue(None, _STOP)
        self._closed = True
        try:
            await asyncio.wait_for(asyncio.shield(self._loop_task), timeout_seconds)
        except TimeoutError:
            logger.warning(
                "supervisor_stop_timeout",
                extra={"timeout_seconds": timeout_seconds},
            )
            self._loop_task.cancel()
            self._cancel_timers()
        self._drain_queue()

    async def settle(self) -> None:
        """Aguarda até que todos os eventos enfileirados sejam processados."""
        await self._queue.join()

    async def request_send(self, destination: str, payload: str) -> SendResult:
        """Envia uma mensagem pelo handle ativo (at-most-once, sem retry).

        Nunca levanta: falhas viram SendResult com error_code.
        """
        snapshot = self._publisher.read()
        handle = self._handle
        if snapshot.state != ConnectionStatus.CONNECTED or handle is None:
            record_send(False, NOT_CONNECTED, get_correlation_id())
            return SendResult.failure(
                NOT_CONNECTED,
                "WhatsApp socket not connected",
                destination=destination,
            )

        started_at = time.perf_counter()
        try:
            await handle.send(destination, payload)
        except Exception as exc:
            failure = exc if isinstance(exc, SendFailure) else SendFailure(str(exc), destination)
            logger.warning(
                "send_failed",
                extra={"error_type": type(exc).__name__, "generation": self.generation},
            )
            record_send(False, SEND_FAILED, get_correlation_id())
            return SendResult.failure(SEND_FAILED, str(failure), destination=destination)

        latency_ms = (time.perf_counter() - started_at) * 1000
        record_latency("supervisor", "send", latency_ms, get_correlation_id())
        record_send(True, correlation_id=get_correlation_id())
        return SendResult.ok(destination)

    # ──────────────────────────────────────────────────────────────
    # Fila e loop
    # ──────────────────────────────────────────────────────────────

    def _enqueue(self, generation: int | None, item: Any) -> None:
        if self._closed:
            logger.debug("event_dropped_after_stop", extra={"event": type(item).__name__})
            return
        self._queue.put_nowait((generation, item))

    def _make_emitter(self, generation: int) -> EventSink:
        """Cria o callback entregue ao handle, marcado com a geração."""
        loop = self._event_loop or asyncio.get_running_loop()

        def emit(event: SessionEvent) -> None:
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                self._enqueue(generation, event)
            else:
                loop.call_soon_threadsafe(self._enqueue, generation, event)

        return emit

    def _drain_queue(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()

    async def _run(self) -> None:
        while True:
            generation, item = await self._queue.get()
            try:
                if item is _STOP:
                    await self._shutdown()
                    return
                with bind_session_generation(self._machine.generation):
                    await self._dispatch(generation, item)
            except Exception:
                logger.exception(
                    "supervisor_event_failed",
                    extra={"event": type(item).__name__, "state": self.state.value},
                )
            finally:
                self._queue.task_done()

    async def _dispatch(self, generation: int | None, item: Any) -> None:
        if generation is not None and (
            generation != self._machine.generation or self._handle is None
        ):
            logger.debug(
                "stale_session_event_ignored",
                extra={
                    "event": type(item).__name__,
                    "event_generation": generation,
                    "generation": self._machine.generation,
                },
            )
            return

        if isinstance(item, CredentialsChanged):
            await self._on_credentials_changed(item)
        elif isinstance(item, PairingChallengeIssued):
            await self._on_pairing_challenge(item)
        elif isinstance(item, ConnectionOpened):
            await self._on_connection_open()
        elif isinstance(item, ConnectionClosed):
            await self._on_connection_close(item)
        elif isinstance(item, StartRequested):
            await self._start_session(item.trigger)
        elif isinstance(item, RestartDue):
            await self._on_restart_due(item)
        elif isinstance(item, PairingTimeoutElapsed):
            self._on_pairing_timeout(item)
        elif isinstance(item, RepairRequested):
            await self._on_repair()
        else:
            logger.warning("unknown_event_ignored", extra={"event": type(item).__name__})

    # ──────────────────────────────────────────────────────────────
    # Handlers
    # ──────────────────────────────────────────────────────────────

    async def _start_session(self, trigger: str) -> None:
        if self._handle is not None:
            logger.warning("start_ignored_session_active", extra={"trigger": trigger})
            return
        if self.state not in (
            ConnectionStatus.IDLE,
            ConnectionStatus.STOPPED,
            ConnectionStatus.FATAL_ERROR,
        ):
            logger.warning(
                "start_ignored_invalid_state",
                extra={"trigger": trigger, "state": self.state.value},
            )
            return

        self._cancel_restart_timer()
        if not self._transition(
            ConnectionStatus.STARTING,
            trigger,
            verdict=None,
            socket_initialized=False,
        ):
            return

        try:
            credentials = self._store.load()
        except CredentialIOError as exc:
            await self._fail(f"Credential store unreadable: {exc}", "credential_load_failed")
            return
        logger.info(
            "credentials_loaded",
            extra={"blob_count": len(credentials), "fresh_pairing": not credentials},
        )

        emit = self._make_emitter(self._machine.generation)
        try:
            handle = await self._factory.open(credentials, emit)
        except Exception as exc:
            error = exc if isinstance(exc, SessionOpenError) else SessionOpenError(str(exc))
            logger.error(
                "session_open_failed",
                extra={"error_type": type(exc).__name__},
            )
            await self._fail(str(error) or type(exc).__name__, "session_open_failed")
            return

        self._handle = handle
        self._publisher.evolve(socket_initialized=True)
        logger.info("session_opened", extra={"generation": self._machine.generation})

        generation = self._machine.generation
        self._pairing_timer = self._scheduler.call_later(
            self._pairing_timeout_seconds,
            lambda: self._enqueue(None, PairingTimeoutElapsed(generation)),
        )

    async def _on_credentials_changed(self, event: CredentialsChanged) -> None:
        try:
            self._store.save(event.credentials)
        except CredentialIOError as exc:
            await self._fail(f"Credential store unwritable: {exc}", "credential_save_failed")
            return
        logger.debug("credentials_saved", extra={"blob_count": len(event.credentials)})

    async def _on_pairing_challenge(self, event: PairingChallengeIssued) -> None:
        if self.state not in (ConnectionStatus.STARTING, ConnectionStatus.AWAITING_PAIRING):
            logger.warning(
                "pairing_challenge_ignored",
                extra={"state": self.state.value},
            )
            return

        if not isinstance(event.token, str) or not event.token:
            logger.warning(
                "pairing_challenge_rejected",
                extra={"state": self.state.value, "reason": "empty_token"},
            )
            return

        self._cancel_pairing_timer()
        challenge = PairingChallenge(
            token=event.token,
            image_data_url=self._render(event.token),
        )
        self._transition(
            ConnectionStatus.AWAITING_PAIRING,
            "pairing_challenge",
            metadata={"rendered": challenge.is_rendered},
            pairing_challenge=challenge,
            last_error=None,
        )

    async def _on_connection_open(self) -> None:
        self._cancel_pairing_timer()
        self._transition(
            ConnectionStatus.CONNECTED,
            "connection_open",
            last_error=None,
            verdict=None,
        )

    async def _on_connection_close(self, event: ConnectionClosed) -> None:
        self._cancel_pairing_timer()
        verdict = self._policy.classify(event.raw_code)
        logger.info("connection_closed", extra=verdict.to_log_dict())

        if not self._transition(
            ConnectionStatus.STOPPED,
            "connection_close",
            metadata=verdict.to_log_dict(),
            verdict=verdict,
            last_error=f"Connection closed with code: {event.raw_code}",
        ):
            return

        await self._release_handle()
        generation = self._machine.generation

        if verdict.action == RecoveryAction.NO_RETRY:
            logger.info("logged_out_not_reconnecting", extra={"generation": generation})
            self._transition(ConnectionStatus.IDLE, "logged_out")
            return

        if verdict.should_invalidate:
            try:
                self._store.invalidate()
            except CredentialIOError as exc:
                await self._fail(
                    f"Credential invalidation failed: {exc}", "credential_invalidate_failed"
                )
                return
            logger.info("credentials_invalidated", extra={"raw_code": verdict.raw_code})

        delay = verdict.delay_seconds or 0.0
        self._schedule_restart(delay)
        record_reconnect(
            verdict.cause.value,
            delay,
            generation,
            invalidated=verdict.should_invalidate,
        )

    async def _on_restart_due(self, event: RestartDue) -> None:
        self._restart_timer = None
        if self.state != ConnectionStatus.STOPPED:
            logger.debug("restart_ignored", extra={"state": self.state.value})
            return
        await self._start_session("scheduled_restart")

    def _on_pairing_timeout(self, event: PairingTimeoutElapsed) -> None:
        self._pairing_timer = None
        snapshot = self._publisher.read()
        if (
            event.generation != self._machine.generation
            or self.state != ConnectionStatus.STARTING
            or snapshot.has_pairing_challenge
        ):
            return

        # Diagnóstico apenas: nenhuma transição forçada
        log_diagnostic(logger, "pairing_challenge_timeout", PAIRING_TIMEOUT_HINTS)
        self._publisher.evolve(last_error=PAIRING_TIMEOUT_MESSAGE)

    async def _on_repair(self) -> None:
        logger.info("repair_requested", extra={"state": self.state.value})
        self._cancel_timers()
        if self._handle is not None:
            await self._release_handle()
        if self._machine.is_live:
            self._transition(ConnectionStatus.IDLE, "repair")

        try:
            self._store.invalidate()
        except CredentialIOError as exc:
            await self._fail(f"Credential invalidation failed: {exc}", "repair_failed")
            return

        await self._start_session("repair")

    async def _shutdown(self) -> None:
        self._cancel_timers()
        await self._release_handle()
        if self.state != ConnectionStatus.IDLE:
            self._transition(ConnectionStatus.IDLE, "shutdown")
        logger.info("supervisor_stopped", extra=self._machine.get_state_summary())

    # ──────────────────────────────────────────────────────────────
    # Auxiliares
    # ──────────────────────────────────────────────────────────────

    def _transition(
        self,
        target: ConnectionStatus,
        trigger: str,
        metadata: dict[str, Any] | None = None,
        **snapshot_changes: Any,
    ) -> bool:
        result = self._machine.transition(target, trigger, metadata, context=self)
        if not result.success:
            logger.warning(
                "lifecycle_transition_rejected",
                extra={
                    "from_state": self.state.value,
                    "to_state": target.value,
                    "trigger": trigger,
                    "reason": result.error_reason,
                },
            )
            return False

        if target != ConnectionStatus.AWAITING_PAIRING:
            snapshot_changes["pairing_challenge"] = None
        snapshot_changes["socket_initialized"] = snapshot_changes.get(
            "socket_initialized", self._handle is not None
        )
        self._publisher.evolve(state=target, **snapshot_changes)

        transition = result.transition
        if transition is not None:
            logger.info("lifecycle_transition", extra=transition.to_log_dict())
        return True

    async def _fail(self, message: str, trigger: str) -> None:
        """Converte falha de inicialização/persistência em FATAL_ERROR."""
        self._cancel_timers()
        await self._release_handle()
        logger.error("lifecycle_fatal_error", extra={"trigger": trigger, "error": message})
        if self.state == ConnectionStatus.FATAL_ERROR:
            self._publisher.evolve(last_error=message)
            return
        self._transition(ConnectionStatus.FATAL_ERROR, trigger, last_error=message)

    async def _release_handle(self) -> None:
        """Fecha o handle ativo; nova sessão só começa após este retorno."""
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            await handle.close()
        except Exception as exc:
            logger.warning(
                "session_close_failed",
                extra={"error_type": type(exc).__name__},
            )
        self._publisher.evolve(socket_initialized=False)

    def _render(self, token: str) -> str | None:
        if self._renderer is None:
            return None
        try:
            return self._renderer.render(token)
        except Exception as exc:
            log_fallback(logger, "pairing_renderer", reason=type(exc).__name__)
            return None

    def _schedule_restart(self, delay: float) -> None:
        self._cancel_restart_timer()
        logger.info("restart_scheduled", extra={"delay_seconds": delay})
        self._restart_timer = self._scheduler.call_later(
            delay,
            lambda: self._enqueue(None, RestartDue(delay)),
        )

    def _cancel_restart_timer(self) -> None:
        timer, self._restart_timer = self._restart_timer, None
        if timer is not None:
            timer.cancel()

    def _cancel_pairing_timer(self) -> None:
        timer, self._pairing_timer = self._pairing_timer, None
        if timer is not None:
            timer.cancel()

    def _cancel_timers(self) -> None:
        self._cancel_restart_timer()
        self._cancel_pairing_timer()
