"""
Estados de conexão do supervisor de sessão.

Este módulo define os estados que a conexão com o backend de mensagens
pode assumir. Exatamente um estado está ativo por vez e as transições
são estritamente sequenciais.
"""

from enum import StrEnum


class ConnectionStatus(StrEnum):
    """
    Estados canônicos do ciclo de vida da conexão.

    Estados vivos (existe um Session Handle aberto):
        - STARTING: Handle aberto, aguardando challenge ou conexão
        - AWAITING_PAIRING: Pairing challenge emitido, aguardando leitura
        - CONNECTED: Sessão autenticada e apta a enviar

    Estados de repouso (nenhuma ação automática pendente):
        - IDLE: Supervisor parado ou sessão encerrada sem retry
        - FATAL_ERROR: Falha de inicialização; requer intervenção externa

    Estado intermediário:
        - STOPPED: Conexão fechada; veredito decide o próximo passo
    """

    IDLE = "IDLE"
    STARTING = "STARTING"
    AWAITING_PAIRING = "AWAITING_PAIRING"
    CONNECTED = "CONNECTED"
    STOPPED = "STOPPED"
    FATAL_ERROR = "FATAL_ERROR"

    def __str__(self) -> str:
        return self.value


# Estados em que um Session Handle está ativo
LIVE_STATES: frozenset[ConnectionStatus] = frozenset({
    ConnectionStatus.STARTING,
    ConnectionStatus.AWAITING_PAIRING,
    ConnectionStatus.CONNECTED,
})

# Estados sem ação automática pendente; só saem por comando externo
RESTING_STATES: frozenset[ConnectionStatus] = frozenset({
    ConnectionStatus.IDLE,
    ConnectionStatus.FATAL_ERROR,
})

DEFAULT_INITIAL_STATE: ConnectionStatus = ConnectionStatus.IDLE


def is_live(state: ConnectionStatus) -> bool:
    """Verifica se o estado implica um Session Handle ativo."""
    return state in LIVE_STATES


def is_resting(state: ConnectionStatus) -> bool:
    """
    Verifica se o estado é de repouso (sem ação automática pendente).

    Args:
        state: Estado a ser verificado

    Returns:
        True se nenhuma transição automática parte deste estado
    """
    return state in RESTING_STATES


def is_valid_state(state: ConnectionStatus) -> bool:
    """Verifica se o valor é um ConnectionStatus válido."""
    return isinstance(state, ConnectionStatus)
