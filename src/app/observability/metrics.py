"""Registro de métricas via structured logging.

As métricas são registradas como logs estruturados e podem ser agregadas
posteriormente pelo sistema de logs da hospedagem.

Métricas suportadas:
- Latência: tempo de envio outbound
- Reconnect: restarts agendados por causa de desconexão
- Envio: contagem de envios por resultado

Uso:
    from app.observability.metrics import record_latency, record_reconnect

    start = time.perf_counter()
    # ... operação ...
    latency_ms = (time.perf_counter() - start) * 1000
    record_latency("supervisor", "send", latency_ms, correlation_id)

    record_reconnect("TRANSIENT", delay_seconds=5.0, generation=3)
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "supervisor")
        operation: Nome da operação (ex: "send")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id,
        },
    )


def record_reconnect(
    cause: str,
    delay_seconds: float,
    generation: int,
    invalidated: bool = False,
) -> None:
    """Registra restart agendado após desconexão.

    Args:
        cause: Causa classificada (ex: "TRANSIENT", "RATE_LIMITED")
        delay_seconds: Atraso até o restart
        generation: Geração da sessão que caiu
        invalidated: Se as credenciais foram apagadas antes do restart
    """
    logger.info(
        "metric_reconnect",
        extra={
            "metric_type": "reconnect",
            "component": "supervisor",
            "cause": cause,
            "delay_seconds": delay_seconds,
            "generation": generation,
            "invalidated": invalidated,
        },
    )


def record_send(
    success: bool,
    error_code: str | None = None,
    correlation_id: str | None = None,
) -> None:
    """Registra resultado de envio outbound (sem destino, sem conteúdo)."""
    extra: dict[str, object] = {
        "metric_type": "send",
        "component": "supervisor",
        "success": success,
        "correlation_id": correlation_id,
    }
    if error_code:
        extra["error_code"] = error_code

    logger.info("metric_send", extra=extra)
