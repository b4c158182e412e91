"""Filters de logging do bridge.

- CorrelationIdFilter: injeta `correlation_id` (request ou `session-<n>`)
  e `service` em todo record.
- SecretRedactionFilter: troca por um marcador os campos de `extra`
  que podem carregar material sensível (token de pareamento,
  credenciais, corpo de mensagem, header Authorization).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

# Nomes de campos de `extra` nunca emitidos em claro
REDACTED_FIELDS = frozenset(
    {
        "authorization",
        "credentials",
        "pairing_token",
        "payload",
        "token",
    }
)
REDACTED_VALUE = "[redacted]"


class CorrelationIdFilter(logging.Filter):
    """Injeta correlation_id e service em cada record.

    Um correlation_id passado explicitamente via `extra` é preservado.

    Args:
        service_name: Nome do serviço (ex: "wa_bridge").
        correlation_id_getter: Função que retorna o correlation_id atual;
            sem ela o campo fica vazio.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else self._get_correlation_id()
        record.service = self._service_name
        return True


class SecretRedactionFilter(logging.Filter):
    """Mascara campos sensíveis de `extra` antes da formatação."""

    def __init__(self, fields: Iterable[str] = REDACTED_FIELDS) -> None:
        super().__init__()
        self._fields = frozenset(fields)

    @property
    def fields(self) -> frozenset[str]:
        return self._fields

    def filter(self, record: logging.LogRecord) -> bool:
        for name in self._fields.intersection(record.__dict__):
            setattr(record, name, REDACTED_VALUE)
        return True
