"""Use cases do bridge."""

from .send_message import SendMessageUseCase
from .validation import (
    MAX_TEXT_LENGTH,
    USER_JID_SUFFIX,
    ValidationError,
    normalize_destination,
    validate_message_text,
)

__all__ = [
    "MAX_TEXT_LENGTH",
    "USER_JID_SUFFIX",
    "SendMessageUseCase",
    "ValidationError",
    "normalize_destination",
    "validate_message_text",
]
