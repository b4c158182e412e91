"""
Guards e invariantes para transições de estado.

Guards complementam o mapa de transições com regras que dependem
de contexto (ex: existe um Session Handle ainda aberto).
"""

from typing import Protocol

from fsm.states.connection import ConnectionStatus


class TransitionContext(Protocol):
    """
    Protocolo que define o contexto necessário para avaliar guards.

    O contexto é passado pelo supervisor no momento da transição.
    """

    @property
    def has_active_session(self) -> bool:
        """True se ainda existe um Session Handle aberto."""
        ...


class GuardResult:
    """
    Resultado da avaliação de um guard.

    Attributes:
        allowed: Se a transição é permitida
        reason: Motivo do bloqueio (se allowed=False)
    """

    __slots__ = ("allowed", "reason")

    def __init__(self, allowed: bool, reason: str | None = None) -> None:
        self.allowed = allowed
        self.reason = reason

    @classmethod
    def allow(cls) -> "GuardResult":
        """Cria resultado permitindo a transição."""
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "GuardResult":
        """Cria resultado negando a transição."""
        return cls(allowed=False, reason=reason)


def guard_valid_state(
    from_state: ConnectionStatus,
    to_state: ConnectionStatus,
    context: TransitionContext | None = None,
) -> GuardResult:
    """Guard: ambos os estados devem ser ConnectionStatus."""
    if not isinstance(from_state, ConnectionStatus):
        return GuardResult.deny(f"Estado de origem inválido: {from_state}")

    if not isinstance(to_state, ConnectionStatus):
        return GuardResult.deny(f"Estado de destino inválido: {to_state}")

    return GuardResult.allow()


def guard_same_state(
    from_state: ConnectionStatus,
    to_state: ConnectionStatus,
    context: TransitionContext | None = None,
) -> GuardResult:
    """
    Guard: Previne transição reflexiva.

    Apenas AWAITING_PAIRING pode transitar para si mesmo, quando o
    backend renova o pairing challenge.
    """
    if from_state == ConnectionStatus.AWAITING_PAIRING:
        return GuardResult.allow()

    if from_state == to_state:
        return GuardResult.deny(
            f"Transição reflexiva não permitida: {from_state.name} → {to_state.name}"
        )

    return GuardResult.allow()


def guard_single_session(
    from_state: ConnectionStatus,
    to_state: ConnectionStatus,
    context: TransitionContext | None = None,
) -> GuardResult:
    """
    Guard: Um novo STARTING exige que o handle anterior esteja fechado.

    Evita duas sessões concorrentes gravando credenciais.
    """
    if to_state != ConnectionStatus.STARTING or context is None:
        return GuardResult.allow()

    if context.has_active_session:
        return GuardResult.deny(
            "Session Handle anterior ainda ativo; STARTING bloqueado"
        )

    return GuardResult.allow()


# Lista de guards a serem aplicados em ordem
# Todos devem retornar allow() para a transição prosseguir
DEFAULT_GUARDS = [
    guard_valid_state,
    guard_same_state,
    guard_single_session,
]


def evaluate_guards(
    from_state: ConnectionStatus,
    to_state: ConnectionStatus,
    context: TransitionContext | None = None,
    guards: list | None = None,
) -> GuardResult:
    """
    Avalia todos os guards para uma transição.

    Args:
        from_state: Estado de origem
        to_state: Estado de destino
        context: Contexto do supervisor (opcional)
        guards: Lista de guards a aplicar (usa DEFAULT_GUARDS se None)

    Returns:
        GuardResult do primeiro guard que negar, ou allow() se todos passarem
    """
    guards_to_apply = guards if guards is not None else DEFAULT_GUARDS

    for guard in guards_to_apply:
        result = guard(from_state, to_state, context)
        if not result.allowed:
            return result

    return GuardResult.allow()
