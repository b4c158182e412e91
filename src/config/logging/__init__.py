"""Configuração de logging estruturado.

Re-exporta funções e classes para configuração de logging JSON.

Uso:
    from config.logging import configure_logging, get_logger

    # Na inicialização (bootstrap)
    configure_logging(level="INFO", service_name="wa_bridge")

    # Em qualquer módulo
    logger = get_logger(__name__)
    logger.info("session_opened", extra={"generation": 1})

Campos obrigatórios em todo log:
- correlation_id
- service
- level
- logger
- message
- asctime

Logs estruturados, sem credenciais nem PII.
"""

from config.logging.config import (
    configure_logging,
    get_logger,
    log_diagnostic,
    log_fallback,
)
from config.logging.filters import (
    REDACTED_FIELDS,
    REDACTED_VALUE,
    CorrelationIdFilter,
    SecretRedactionFilter,
)
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
    json_default,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REDACTED_FIELDS",
    "REDACTED_VALUE",
    "REQUIRED_LOG_FIELDS",
    # Filters
    "CorrelationIdFilter",
    "SecretRedactionFilter",
    # Configuração principal
    "configure_logging",
    # Formatters
    "create_json_formatter",
    "get_logger",
    "json_default",
    "log_diagnostic",
    "log_fallback",
]
