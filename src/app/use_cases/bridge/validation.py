"""Validação e normalização de envios outbound."""

from __future__ import annotations

import re

# Sufixo de JID de usuário no backend
USER_JID_SUFFIX = "@s.whatsapp.net"
MAX_TEXT_LENGTH = 4096

_NON_DIGITS = re.compile(r"\D")


class ValidationError(ValueError):
    """Erro de validação de requisição de envio."""


def normalize_destination(destination: str) -> str:
    """Converte um telefone em JID do backend.

    Remove qualquer caractere não numérico e acrescenta o sufixo de
    usuário. Destinos que já contêm "@" (JID ou grupo) passam intactos.

    Raises:
        ValidationError: Se não restar nenhum dígito.
    """
    if not isinstance(destination, str):
        raise ValidationError("destination must be a string")
    value = destination.strip()
    if "@" in value:
        user, _, server = value.partition("@")
        if not user or not server:
            raise ValidationError("destination JID is malformed")
        return value
    digits = _NON_DIGITS.sub("", value)
    if not digits:
        raise ValidationError("destination must contain digits")
    return f"{digits}{USER_JID_SUFFIX}"


def validate_message_text(message: str) -> None:
    """Valida o texto da mensagem.

    Raises:
        ValidationError: Se texto ausente ou excede limite.
    """
    if not isinstance(message, str) or not message.strip():
        raise ValidationError("message is required")

    if len(message) > MAX_TEXT_LENGTH:
        raise ValidationError(f"message exceeds maximum length of {MAX_TEXT_LENGTH} characters")
