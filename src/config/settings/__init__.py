"""Agregador de settings do bridge.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    Environment,
    get_base_settings,
)

# Bridge settings
from config.settings.bridge import (
    DEFAULT_SECURITY_TOKEN,
    BridgeSettings,
    get_bridge_settings,
)

__all__ = [
    "DEFAULT_SECURITY_TOKEN",
    "BaseSettings",
    "BridgeSettings",
    "Environment",
    "get_base_settings",
    "get_bridge_settings",
]
