"""Escrow terminal-state guard.

Uses python-statemachine so that a second settlement of the same escrow is
rejected by the transition table rather than by a zero-balance transfer.

Transition table:
    ACTIVE -> WITHDRAWN   (redeem)   secret revealed by the withdraw role
    ACTIVE -> CANCELLED   (refund)   deadline passed, cancel role refunded
"""

from __future__ import annotations

from statemachine import State, StateMachine


class EscrowStateMachine(StateMachine):
    """State machine that guards an escrow's single settlement.

    Usage:
        sm = EscrowStateMachine()
        sm.redeem()          # transitions to WITHDRAWN
        sm.status            # "WITHDRAWN"
    """

    # --- States ---
    ACTIVE = State("ACTIVE", initial=True)
    WITHDRAWN = State("WITHDRAWN", final=True)
    CANCELLED = State("CANCELLED", final=True)

    # --- Events / Transitions ---
    redeem = ACTIVE.to(WITHDRAWN)
    refund = ACTIVE.to(CANCELLED)

    def __init__(self, current_status: str = "ACTIVE") -> None:
        """Initialize the state machine at a given status.

        Args:
            current_status: An EscrowStatus value (e.g., "ACTIVE").
        """
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches EscrowStatus enum)."""
        return str(self.current_state_value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [_event_id(event) for event in self.allowed_events]


def _event_id(event) -> str:  # noqa: ANN001
    # Newer releases give events a human-readable name next to their id.
    return str(getattr(event, "id", None) or event.name)

