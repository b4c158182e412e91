"""
Exports públicos do módulo fsm/states.

Estados de conexão do supervisor de sessão.
"""

from fsm.states.connection import (
    DEFAULT_INITIAL_STATE,
    LIVE_STATES,
    RESTING_STATES,
    ConnectionStatus,
    is_live,
    is_resting,
    is_valid_state,
)

__all__ = [
    "DEFAULT_INITIAL_STATE",
    "LIVE_STATES",
    "RESTING_STATES",
    "ConnectionStatus",
    "is_live",
    "is_resting",
    "is_valid_state",
]
