"""
Canonical workflow types (``property_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the status state machines of the PDC and checkout
modules.  Guard, Transition and Workflow are defined once here; each module
declares its machine in its own ``workflows.py``.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* A terminal state has no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass

from property_kernel.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Descriptive only: the owning service evaluates the condition.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``requires_approval=True`` marks the transition as gated behind a
    second-person approval step.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    requires_approval: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a record lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"{self.name}: initial state {self.initial_state!r} is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"{self.name}: transition {t.from_state}->{t.to_state} "
                    "references an undeclared state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"{self.name}: terminal state {t.from_state!r} has an outgoing transition"
                )

    def find_transition(self, current_state: str, action: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == current_state and t.action == action:
                return t
        return None

    def sources_for(self, action: str) -> frozenset[str]:
        """States from which ``action`` may fire (the action's guard set)."""
        return frozenset(t.from_state for t in self.transitions if t.action == action)

    def target_of(self, action: str) -> str:
        """Status the action produces; alternatives are joined with ``|``."""
        targets = sorted({t.to_state for t in self.transitions if t.action == action})
        if not targets:
            raise KeyError(f"{self.name}: unknown action {action!r}")
        return "|".join(targets)

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states


def require_transition(
    workflow: Workflow,
    entity_type: str,
    entity_id,
    current_state: str,
    action: str,
) -> Transition:
    """Return the transition for ``action`` or raise ``InvalidTransitionError``.

    The error names both the current status and the status the action would
    have produced.
    """
    transition = workflow.find_transition(current_state, action)
    if transition is None:
        raise InvalidTransitionError(
            entity_type=entity_type,
            entity_id=str(entity_id),
            current_status=current_state,
            requested_status=workflow.target_of(action),
            action=action,
        )
    return transition
