"""Observabilidade — logs estruturados, correlation_id, métricas.

Re-exporta funções de correlation_id e métricas para uso em toda a aplicação.

Uso:
    from app.observability import get_correlation_id, set_correlation_id
    from app.observability import record_latency, record_reconnect, record_send
"""

from app.observability.correlation import (
    bind_session_generation,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    session_correlation_id,
    set_correlation_id,
)
from app.observability.metrics import (
    record_latency,
    record_reconnect,
    record_send,
)

__all__ = [
    "bind_session_generation",
    "generate_correlation_id",
    "get_correlation_id",
    "record_latency",
    "record_reconnect",
    "record_send",
    "reset_correlation_id",
    "session_correlation_id",
    "set_correlation_id",
]
