"""Factories de dependências — criação de implementações concretas.

Este módulo centraliza a criação do store de credenciais, do renderer
de pareamento, da session factory externa e do supervisor, a partir
das settings de ambiente.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from app.infra.pairing import QrCodeRenderer
from app.infra.stores import FileCredentialStore
from app.lifecycle import DisconnectPolicy, LifecycleSupervisor
from app.use_cases.bridge import SendMessageUseCase
from config.settings import get_bridge_settings
from utils.errors import SessionFactoryConfigError, SessionOpenError

if TYPE_CHECKING:
    from app.protocols import (
        Credentials,
        CredentialStoreProtocol,
        EventSink,
        SessionFactoryProtocol,
        SessionHandleProtocol,
    )
    from config.settings import BridgeSettings

logger = logging.getLogger(__name__)


class UnconfiguredSessionFactory:
    """Session factory usada quando BRIDGE_SESSION_FACTORY está vazio.

    Toda abertura falha, o que leva o supervisor a FATAL_ERROR com a
    mensagem visível em GET /api/status.
    """

    async def open(
        self,
        credentials: Credentials,
        emit: EventSink,
    ) -> SessionHandleProtocol:
        raise SessionOpenError("BRIDGE_SESSION_FACTORY não configurado")


# ──────────────────────────────────────────────────────────────────────────────
# Credential Store Factory
# ──────────────────────────────────────────────────────────────────────────────


def create_credential_store(settings: BridgeSettings | None = None) -> CredentialStoreProtocol:
    """Cria o store de credenciais em diretório e loga seu conteúdo."""
    bridge = settings or get_bridge_settings()
    store = FileCredentialStore(bridge.session_folder)
    store.ensure_directory()
    logger.info(
        "credential_store_created",
        extra={"path": str(store.directory), "blob_count": store.count()},
    )
    return store


# ──────────────────────────────────────────────────────────────────────────────
# Session Factory (colaborador externo)
# ──────────────────────────────────────────────────────────────────────────────


def load_session_factory(
    path: str,
    settings: BridgeSettings | None = None,
) -> SessionFactoryProtocol:
    """Importa a session factory a partir de `modulo:atributo`.

    O atributo pode ser uma factory pronta (com método `open`) ou um
    callable `builder(settings, browser_name=...)` que devolve a factory.
    O `browser_name` é o nome de dispositivo que o backend exibe na lista
    de aparelhos pareados.

    Raises:
        SessionFactoryConfigError: Caminho inválido ou objeto incompatível.
    """
    module_name, sep, attr_name = path.partition(":")
    if not sep or not module_name or not attr_name:
        raise SessionFactoryConfigError(
            f"BRIDGE_SESSION_FACTORY deve ter formato 'modulo:atributo': {path!r}"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise SessionFactoryConfigError(f"Módulo não encontrado: {module_name}") from exc

    target = getattr(module, attr_name, None)
    if target is None:
        raise SessionFactoryConfigError(f"Atributo {attr_name} ausente em {module_name}")

    factory = target if hasattr(target, "open") and not isinstance(target, type) else None
    if factory is None and callable(target):
        bridge = settings or get_bridge_settings()
        factory = target(bridge, browser_name=bridge.browser_name)

    if not callable(getattr(factory, "open", None)):
        raise SessionFactoryConfigError(f"{path} não fornece um método open()")

    logger.info("session_factory_loaded", extra={"factory": path})
    return factory


def create_session_factory(settings: BridgeSettings | None = None) -> SessionFactoryProtocol:
    """Cria a session factory configurada (ou a de fallback)."""
    bridge = settings or get_bridge_settings()
    if not bridge.session_factory:
        logger.warning("session_factory_not_configured")
        return UnconfiguredSessionFactory()
    return load_session_factory(bridge.session_factory, bridge)


# ──────────────────────────────────────────────────────────────────────────────
# Supervisor e use cases
# ──────────────────────────────────────────────────────────────────────────────


def create_supervisor(
    settings: BridgeSettings | None = None,
    *,
    session_factory: SessionFactoryProtocol | None = None,
    credential_store: CredentialStoreProtocol | None = None,
) -> LifecycleSupervisor:
    """Monta o LifecycleSupervisor com a política das settings."""
    bridge = settings or get_bridge_settings()
    policy = DisconnectPolicy(
        retry_delay_seconds=bridge.retry_delay_seconds,
        invalidate_retry_delay_seconds=bridge.invalidate_retry_delay_seconds,
    )
    return LifecycleSupervisor(
        session_factory=session_factory or create_session_factory(bridge),
        credential_store=credential_store or create_credential_store(bridge),
        renderer=QrCodeRenderer(),
        policy=policy,
        pairing_timeout_seconds=bridge.pairing_timeout_seconds,
    )


def create_send_message_use_case(supervisor: LifecycleSupervisor) -> SendMessageUseCase:
    """Cria o use case de envio sobre o supervisor."""
    return SendMessageUseCase(supervisor)
