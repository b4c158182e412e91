"""Protocolos e contratos do núcleo do bridge com colaboradores externos."""

from .credential_store import Credentials, CredentialStoreProtocol
from .pairing_renderer import PairingRendererProtocol
from .scheduler import TimerHandleProtocol, TimerSchedulerProtocol
from .session_handle import (
    EventSink,
    SessionFactoryProtocol,
    SessionHandleProtocol,
)

__all__ = [
    "CredentialStoreProtocol",
    "Credentials",
    "EventSink",
    "PairingRendererProtocol",
    "SessionFactoryProtocol",
    "SessionHandleProtocol",
    "TimerHandleProtocol",
    "TimerSchedulerProtocol",
]
