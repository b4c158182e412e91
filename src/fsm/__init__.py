"""
Módulo FSM — Máquina de estados da conexão com o backend de mensagens.

Estrutura:
    - states/: Definições dos estados (ConnectionStatus enum)
    - transitions/: Regras de transição (VALID_TRANSITIONS)
    - rules/: Guards e invariantes
    - manager/: Máquina de estados (ConnectionStateMachine)
    - types/: Tipos de dados (StateTransition, TransitionResult)
"""

from fsm.manager import (
    DEFAULT_HISTORY_LIMIT,
    ConnectionStateMachine,
    create_state_machine,
)
from fsm.rules import (
    GuardResult,
    TransitionContext,
    evaluate_guards,
)
from fsm.states import (
    DEFAULT_INITIAL_STATE,
    LIVE_STATES,
    RESTING_STATES,
    ConnectionStatus,
    is_live,
    is_resting,
    is_valid_state,
)
from fsm.transitions import (
    VALID_TRANSITIONS,
    get_valid_targets,
    is_transition_valid,
    validate_transition_map,
)
from fsm.types import (
    StateTransition,
    TransitionResult,
)

__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_INITIAL_STATE",
    "LIVE_STATES",
    "RESTING_STATES",
    "VALID_TRANSITIONS",
    "ConnectionStateMachine",
    "ConnectionStatus",
    "GuardResult",
    "StateTransition",
    "TransitionContext",
    "TransitionResult",
    "create_state_machine",
    "evaluate_guards",
    "get_valid_targets",
    "is_live",
    "is_resting",
    "is_transition_valid",
    "is_valid_state",
    "validate_transition_map",
]
