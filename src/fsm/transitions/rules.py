"""
Regras de transição válidas entre estados de conexão.

Este módulo define o grafo de transições do supervisor. Transições
para IDLE a partir de estados vivos representam parada explícita
(shutdown ou re-pareamento).
"""

from fsm.states.connection import ConnectionStatus

# Tipagem explícita do mapa de transições
TransitionMap = dict[ConnectionStatus, frozenset[ConnectionStatus]]

# Chave: estado de origem
# Valor: conjunto de estados de destino permitidos
VALID_TRANSITIONS: TransitionMap = {
    # IDLE: só sai por start/restart/repair (repair pode falhar ao invalidar)
    ConnectionStatus.IDLE: frozenset({
        ConnectionStatus.STARTING,
        ConnectionStatus.FATAL_ERROR,
    }),

    # STARTING: credenciais válidas conectam direto, sem challenge
    ConnectionStatus.STARTING: frozenset({
        ConnectionStatus.AWAITING_PAIRING,
        ConnectionStatus.CONNECTED,
        ConnectionStatus.STOPPED,
        ConnectionStatus.FATAL_ERROR,
        ConnectionStatus.IDLE,
    }),

    # AWAITING_PAIRING: challenge é renovado periodicamente pelo backend
    ConnectionStatus.AWAITING_PAIRING: frozenset({
        ConnectionStatus.AWAITING_PAIRING,
        ConnectionStatus.CONNECTED,
        ConnectionStatus.STOPPED,
        ConnectionStatus.FATAL_ERROR,
        ConnectionStatus.IDLE,
    }),

    ConnectionStatus.CONNECTED: frozenset({
        ConnectionStatus.STOPPED,
        ConnectionStatus.FATAL_ERROR,
        ConnectionStatus.IDLE,
    }),

    # STOPPED: veredito decide entre repouso, restart ou falha de invalidação
    ConnectionStatus.STOPPED: frozenset({
        ConnectionStatus.IDLE,
        ConnectionStatus.STARTING,
        ConnectionStatus.FATAL_ERROR,
    }),

    # FATAL_ERROR: sem retry automático; repair explícito reinicia
    ConnectionStatus.FATAL_ERROR: frozenset({
        ConnectionStatus.STARTING,
        ConnectionStatus.IDLE,
    }),
}


def get_valid_targets(state: ConnectionStatus) -> frozenset[ConnectionStatus]:
    """
    Retorna os estados de destino válidos para um estado de origem.

    Args:
        state: Estado de origem

    Returns:
        Conjunto de estados de destino permitidos
    """
    return VALID_TRANSITIONS.get(state, frozenset())


def is_transition_valid(
    from_state: ConnectionStatus,
    to_state: ConnectionStatus,
) -> bool:
    """Verifica se uma transição é válida segundo o mapa."""
    return to_state in get_valid_targets(from_state)


def validate_transition_map() -> list[str]:
    """
    Valida a integridade do mapa de transições.

    Verifica:
    - Todos os estados do enum estão no mapa
    - Todo estado é alcançável a partir de algum outro
    - Nenhuma transição aponta para estado inexistente

    Returns:
        Lista de erros encontrados (vazia se válido)
    """
    errors: list[str] = []

    for state in ConnectionStatus:
        if state not in VALID_TRANSITIONS:
            errors.append(f"Estado {state.name} ausente em VALID_TRANSITIONS")

    reachable: set[ConnectionStatus] = set()
    for from_state, targets in VALID_TRANSITIONS.items():
        for target in targets:
            if not isinstance(target, ConnectionStatus):
                errors.append(
                    f"Transição {from_state.name} → {target}: destino inválido"
                )
                continue
            if target != from_state:
                reachable.add(target)

    for state in ConnectionStatus:
        if state not in reachable:
            errors.append(f"Estado {state.name} inalcançável")

    return errors
