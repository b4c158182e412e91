"""Settings do bridge de mensagens.

Configurações do supervisor de conexão, do diretório de credenciais
e da superfície HTTP de comandos.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

# Token padrão do original; proibido fora de development
DEFAULT_SECURITY_TOKEN: str = "your-secret-token"
DEFAULT_SESSION_FOLDER: str = "wa_session"


@dataclass(frozen=True)
class BridgeSettings:
    """Configurações do bridge.

    Attributes:
        session_folder: Diretório onde as credenciais são persistidas
        security_token: Bearer token exigido nos comandos HTTP
        port: Porta HTTP do serviço
        pairing_timeout_seconds: Espera máxima pelo pairing challenge
        retry_delay_seconds: Atraso de restart para quedas transitórias
        invalidate_retry_delay_seconds: Atraso de restart após invalidação (405)
        session_factory: Caminho `modulo:atributo` da session factory
        browser_name: Nome de dispositivo informado ao backend
    """

    session_folder: str = DEFAULT_SESSION_FOLDER
    security_token: str = DEFAULT_SECURITY_TOKEN
    port: int = 3000

    # Política de reconexão
    pairing_timeout_seconds: float = 10.0
    retry_delay_seconds: float = 5.0
    invalidate_retry_delay_seconds: float = 60.0

    # Colaborador externo
    session_factory: str = ""
    browser_name: str = "WhatsApp Bridge"

    @property
    def masked_token(self) -> str:
        """Prefixo do token seguro para logs."""
        return f"{self.security_token[:5]}..."

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações do bridge.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if not self.session_folder:
            errors.append("BRIDGE_SESSION_FOLDER não pode ser vazio")

        if not self.security_token:
            errors.append("BRIDGE_SECURITY_TOKEN não configurado")
        elif self.security_token == DEFAULT_SECURITY_TOKEN and not base.is_development:
            errors.append("BRIDGE_SECURITY_TOKEN padrão proibido em staging/production")

        if not 0 < self.port < 65536:
            errors.append("PORT deve estar entre 1 e 65535")

        if self.pairing_timeout_seconds <= 0:
            errors.append("BRIDGE_PAIRING_TIMEOUT_SECONDS deve ser > 0")

        if self.retry_delay_seconds < 0:
            errors.append("BRIDGE_RETRY_DELAY_SECONDS deve ser >= 0")

        if self.invalidate_retry_delay_seconds < 0:
            errors.append("BRIDGE_INVALIDATE_RETRY_DELAY_SECONDS deve ser >= 0")

        if not self.session_factory:
            errors.append("BRIDGE_SESSION_FACTORY não configurado")
        elif ":" not in self.session_factory:
            errors.append("BRIDGE_SESSION_FACTORY deve ter formato 'modulo:atributo'")

        return errors


def _load_from_env() -> BridgeSettings:
    """Carrega BridgeSettings a partir de variáveis de ambiente."""
    return BridgeSettings(
        session_folder=os.getenv("BRIDGE_SESSION_FOLDER", DEFAULT_SESSION_FOLDER),
        security_token=os.getenv("BRIDGE_SECURITY_TOKEN", DEFAULT_SECURITY_TOKEN),
        port=int(os.getenv("PORT", "3000")),
        pairing_timeout_seconds=float(
            os.getenv("BRIDGE_PAIRING_TIMEOUT_SECONDS", "10")
        ),
        retry_delay_seconds=float(os.getenv("BRIDGE_RETRY_DELAY_SECONDS", "5")),
        invalidate_retry_delay_seconds=float(
            os.getenv("BRIDGE_INVALIDATE_RETRY_DELAY_SECONDS", "60")
        ),
        session_factory=os.getenv("BRIDGE_SESSION_FACTORY", ""),
        browser_name=os.getenv("BRIDGE_BROWSER_NAME", "WhatsApp Bridge"),
    )


@lru_cache(maxsize=1)
def get_bridge_settings() -> BridgeSettings:
    """Retorna instância cacheada de BridgeSettings.

    A cache garante singleton para múltiplas injeções.
    """
    return _load_from_env()
