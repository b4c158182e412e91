"""Formatter JSON do bridge.

Todo record sai como uma linha JSON com os campos de REQUIRED_LOG_FIELDS
mais o que vier em `extra`. Valores que o encoder padrão não conhece
(bytes de credencial, datetimes, conjuntos) são convertidos por
`json_default`; bytes nunca são emitidos, apenas o tamanho.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pythonjsonlogger.json import JsonFormatter

REQUIRED_LOG_FIELDS = frozenset(
    {
        "asctime",
        "levelname",
        "name",
        "message",
        "correlation_id",
        "service",
    }
)

FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
}


def json_default(value: object) -> object:
    """Serializa valores fora do JSON padrão."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<{len(value)} bytes>"
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(str(item) for item in value)
    return str(value)


def create_json_formatter() -> JsonFormatter:
    """Cria o formatter JSON do serviço.

    Exemplo de output:
        {"asctime": "2026-02-02 10:30:00,123", "level": "INFO",
         "logger": "app.lifecycle.supervisor", "message": "lifecycle_transition",
         "correlation_id": "session-1", "service": "wa_bridge",
         "from_state": "STARTING", "to_state": "AWAITING_PAIRING"}
    """
    format_string = " ".join(f"%({field})s" for field in sorted(REQUIRED_LOG_FIELDS))

    return JsonFormatter(
        format_string,
        rename_fields=FIELD_RENAME_MAP,
        json_default=json_default,
    )
