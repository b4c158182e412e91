"""Ciclo de vida da conexão — supervisor, classificador e status.

Uso:
    from app.lifecycle import LifecycleSupervisor, classify

    supervisor = LifecycleSupervisor(session_factory, credential_store)
    await supervisor.start()
    snapshot = supervisor.get_status()
"""

from app.lifecycle.classifier import (
    DEFAULT_POLICY,
    LOGGED_OUT_CODE,
    SESSION_REJECTED_CODE,
    DisconnectPolicy,
    classify,
    is_logged_out,
)
from app.lifecycle.events import (
    ConnectionClosed,
    ConnectionOpened,
    CredentialsChanged,
    PairingChallengeIssued,
    SessionEvent,
)
from app.lifecycle.models import (
    NOT_CONNECTED,
    SEND_FAILED,
    VALIDATION_ERROR,
    DisconnectCause,
    DisconnectVerdict,
    PairingChallenge,
    RecoveryAction,
    SendResult,
    StatusSnapshot,
)
from app.lifecycle.scheduler import AsyncioTimerScheduler
from app.lifecycle.status import StatusPublisher
from app.lifecycle.supervisor import (
    PAIRING_TIMEOUT_MESSAGE,
    LifecycleSupervisor,
)

__all__ = [
    "DEFAULT_POLICY",
    "LOGGED_OUT_CODE",
    "NOT_CONNECTED",
    "PAIRING_TIMEOUT_MESSAGE",
    "SEND_FAILED",
    "SESSION_REJECTED_CODE",
    "VALIDATION_ERROR",
    "AsyncioTimerScheduler",
    "ConnectionClosed",
    "ConnectionOpened",
    "CredentialsChanged",
    "DisconnectCause",
    "DisconnectPolicy",
    "DisconnectVerdict",
    "LifecycleSupervisor",
    "PairingChallenge",
    "PairingChallengeIssued",
    "RecoveryAction",
    "SendResult",
    "SessionEvent",
    "StatusPublisher",
    "StatusSnapshot",
    "classify",
    "is_logged_out",
]
