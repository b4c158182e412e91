"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    BridgeError,
    CredentialIOError,
    SendFailure,
    SessionFactoryConfigError,
    SessionOpenError,
)

__all__ = [
    "BridgeError",
    "CredentialIOError",
    "SendFailure",
    "SessionFactoryConfigError",
    "SessionOpenError",
]
