"""
Máquina de estados (ConnectionStateMachine) do supervisor de conexão.

Valida transições contra o mapa e os guards e mantém um histórico
limitado, já que o processo vive por tempo indeterminado e reconecta
indefinidamente.
"""

from collections import deque
from typing import Any

from fsm.rules.guards import GuardResult, TransitionContext, evaluate_guards
from fsm.states.connection import (
    DEFAULT_INITIAL_STATE,
    ConnectionStatus,
    is_live,
    is_resting,
)
from fsm.transitions.rules import get_valid_targets, is_transition_valid
from fsm.types.transition import StateTransition, TransitionResult

DEFAULT_HISTORY_LIMIT = 200


class ConnectionStateMachine:
    """
    Máquina de estados da conexão com o backend de mensagens.

    Attributes:
        current_state: Estado atual da máquina
        history: Últimas transições realizadas
        generation: Geração da sessão corrente (incrementa a cada STARTING)
    """

    __slots__ = ("_current_state", "_generation", "_history", "_name")

    def __init__(
        self,
        initial_state: ConnectionStatus | None = None,
        name: str = "bridge",
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        """
        Inicializa a máquina de estados.

        Args:
            initial_state: Estado inicial (usa DEFAULT_INITIAL_STATE se None)
            name: Identificador da máquina para logs
            history_limit: Máximo de transições mantidas no histórico
        """
        if history_limit < 1:
            raise ValueError("history_limit deve ser >= 1")
        self._current_state = initial_state or DEFAULT_INITIAL_STATE
        self._history: deque[StateTransition] = deque(maxlen=history_limit)
        self._name = name
        self._generation = 0

    @property
    def current_state(self) -> ConnectionStatus:
        """Estado atual da máquina."""
        return self._current_state

    @property
    def history(self) -> list[StateTransition]:
        """Histórico de transições (cópia para evitar mutação externa)."""
        return list(self._history)

    @property
    def name(self) -> str:
        return self._name

    @property
    def generation(self) -> int:
        """Geração da sessão corrente."""
        return self._generation

    @property
    def is_live(self) -> bool:
        """Verifica se o estado atual implica handle ativo."""
        return is_live(self._current_state)

    @property
    def is_resting(self) -> bool:
        """Verifica se está em estado de repouso."""
        return is_resting(self._current_state)

    def can_transition_to(
        self,
        target: ConnectionStatus,
        context: TransitionContext | None = None,
    ) -> bool:
        """Verifica se pode transitar para o estado alvo."""
        if not is_transition_valid(self._current_state, target):
            return False
        return evaluate_guards(self._current_state, target, context).allowed

    def get_valid_targets(self) -> frozenset[ConnectionStatus]:
        """Retorna estados de destino válidos a partir do estado atual."""
        return get_valid_targets(self._current_state)

    def transition(
        self,
        target: ConnectionStatus,
        trigger: str,
        metadata: dict[str, Any] | None = None,
        context: TransitionContext | None = None,
    ) -> TransitionResult:
        """
        Tenta realizar uma transição de estado.

        Entrar em STARTING abre uma nova geração de sessão.

        Args:
            target: Estado de destino
            trigger: Identificador do gatilho (ex: 'connection_open')
            metadata: Dados adicionais para auditoria (nunca credenciais)
            context: Contexto para avaliação dos guards

        Returns:
            TransitionResult com sucesso/falha e dados da transição
        """
        if not is_transition_valid(self._current_state, target):
            return TransitionResult(
                success=False,
                error_reason=(
                    f"Transição inválida: {self._current_state.name} → {target.name}"
                ),
            )

        guard_result: GuardResult = evaluate_guards(
            self._current_state, target, context
        )
        if not guard_result.allowed:
            return TransitionResult(
                success=False,
                error_reason=guard_result.reason,
            )

        if target == ConnectionStatus.STARTING:
            self._generation += 1

        transition = StateTransition(
            from_state=self._current_state,
            to_state=target,
            trigger=trigger,
            metadata=metadata or {},
            generation=self._generation,
        )

        self._current_state = target
        self._history.append(transition)

        return TransitionResult(success=True, transition=transition)

    def get_state_summary(self) -> dict[str, Any]:
        """
        Retorna resumo do estado atual para observability.

        Returns:
            Dict com informações do estado (seguro para logs)
        """
        return {
            "machine": self._name,
            "current_state": self._current_state.name,
            "generation": self._generation,
            "is_live": self.is_live,
            "transition_count": len(self._history),
            "valid_targets": sorted(s.name for s in self.get_valid_targets()),
        }

    def get_history_summary(self) -> list[dict[str, Any]]:
        """Retorna histórico em formato seguro para logs."""
        return [t.to_log_dict() for t in self._history]

    def reset(self, new_initial_state: ConnectionStatus | None = None) -> None:
        """
        Reseta a máquina para estado inicial.

        ATENÇÃO: Limpa o histórico e a contagem de gerações.

        Args:
            new_initial_state: Novo estado inicial (usa default se None)
        """
        self._current_state = new_initial_state or DEFAULT_INITIAL_STATE
        self._history.clear()
        self._generation = 0


def create_state_machine(
    name: str = "bridge",
    initial_state: ConnectionStatus | None = None,
) -> ConnectionStateMachine:
    """
    Factory function para criar a máquina de estados.

    Args:
        name: Identificador da máquina
        initial_state: Estado inicial (opcional)

    Returns:
        ConnectionStateMachine configurada
    """
    return ConnectionStateMachine(initial_state=initial_state, name=name)
