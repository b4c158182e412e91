"""Gerenciamento de correlation_id para rastreamento.

O correlation_id é injetado em todos os logs pelo CorrelationIdFilter.
Requisições HTTP usam o header `x-correlation-id` (ou um UUID novo);
o loop do supervisor usa a geração da sessão (`session-<n>`), de modo
que todos os eventos de uma mesma tentativa de conexão ficam agrupados.

Usa ContextVar para ser thread/async-safe.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id do contexto atual (ou string vazia)."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o correlation_id no contexto atual.

    Args:
        correlation_id: ID a definir. Se None, gera um novo UUID.

    Returns:
        Token para reset posterior via reset_correlation_id().
    """
    value = correlation_id or str(uuid.uuid4())
    return _correlation_id.set(value)


def reset_correlation_id(token: Token[str]) -> None:
    """Restaura o correlation_id ao valor anterior."""
    _correlation_id.reset(token)


def generate_correlation_id() -> str:
    """Gera um novo correlation_id (UUID v4)."""
    return str(uuid.uuid4())


def session_correlation_id(generation: int) -> str:
    """Correlation_id estável de uma geração de sessão."""
    return f"session-{generation}"


@contextmanager
def bind_session_generation(generation: int) -> Iterator[str]:
    """Vincula o correlation_id da geração durante o bloco."""
    token = set_correlation_id(session_correlation_id(generation))
    try:
        yield _correlation_id.get()
    finally:
        reset_correlation_id(token)
