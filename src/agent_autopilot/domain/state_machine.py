"""State machine guards for the engine, bids and oversight requests.

Uses python-statemachine to enforce legal transitions at the domain level.
No matter what the API or a webhook asks for, an illegal transition
(e.g., a lost bid becoming won) raises TransitionNotAllowed before any
row is touched.

Engine transition table:
    STOPPED   -> STARTING   (begin_start)
    STARTING  -> RUNNING    (ticker_armed)
    STARTING  -> STOPPED    (halt)
    RUNNING   -> STOPPED    (halt)

Bid transition table:
    pending   -> won        (mark_won)
    pending   -> lost       (mark_lost)
    pending   -> failed     (mark_failed)

Oversight transition table:
    PENDING   -> APPROVED   (approve)
    PENDING   -> REJECTED   (reject)
    PENDING   -> EXPIRED    (expire)
"""

from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from agent_autopilot.domain.enums import BidStatus, OversightStatus
from agent_autopilot.domain.exceptions import InvalidStateTransitionError


class EngineStateMachine(StateMachine):
    """Lifecycle of the cycle scheduler.

    Usage:
        sm = EngineStateMachine()
        sm.begin_start()   # STARTING
        sm.ticker_armed()  # RUNNING
        sm.halt()          # STOPPED
    """

    STOPPED = State("STOPPED", initial=True)
    STARTING = State("STARTING")
    RUNNING = State("RUNNING")

    begin_start = STOPPED.to(STARTING)
    ticker_armed = STARTING.to(RUNNING)
    halt = STARTING.to(STOPPED) | RUNNING.to(STOPPED)

    @property
    def status(self) -> str:
        return str(self.current_state.value)


class _GuardMachine(StateMachine):
    """Shared constructor for machines rebuilt from a persisted status."""

    def __init__(self, current_status: str) -> None:
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [event.name for event in self.allowed_events]


class BidStateMachine(_GuardMachine):
    """Guards bid ledger status updates coming from marketplace feedback."""

    pending = State("pending", initial=True)
    won = State("won", final=True)
    lost = State("lost", final=True)
    failed = State("failed", final=True)

    mark_won = pending.to(won)
    mark_lost = pending.to(lost)
    mark_failed = pending.to(failed)

    def __init__(self, current_status: str = "pending") -> None:
        super().__init__(current_status)


class OversightStateMachine(_GuardMachine):
    """Guards the human approval lifecycle of an oversight request."""

    PENDING = State("PENDING", initial=True)
    APPROVED = State("APPROVED", final=True)
    REJECTED = State("REJECTED", final=True)
    EXPIRED = State("EXPIRED", final=True)

    approve = PENDING.to(APPROVED)
    reject = PENDING.to(REJECTED)
    expire = PENDING.to(EXPIRED)

    def __init__(self, current_status: str = "PENDING") -> None:
        super().__init__(current_status)


_BID_EVENTS = {
    BidStatus.WON: "mark_won",
    BidStatus.LOST: "mark_lost",
    BidStatus.FAILED: "mark_failed",
}

_OVERSIGHT_EVENTS = {
    OversightStatus.APPROVED: "approve",
    OversightStatus.REJECTED: "reject",
    OversightStatus.EXPIRED: "expire",
}


def _fire(sm: _GuardMachine, event_name: str | None, target: str) -> str:
    current = sm.status
    if event_name is None:
        raise InvalidStateTransitionError(current, target)
    try:
        getattr(sm, event_name)()
    except TransitionNotAllowed as err:
        raise InvalidStateTransitionError(current, target) from err
    return sm.status


def validate_bid_transition(current_status: str, new_status: BidStatus) -> BidStatus:
    """Validate a bid status change and return the resulting status.

    Re-applying the current status is allowed (repeated feedback delivery).

    Raises:
        InvalidStateTransitionError: If the transition is illegal.
    """
    if current_status == new_status.value:
        return new_status
    sm = BidStateMachine(current_status=current_status)
    return BidStatus(_fire(sm, _BID_EVENTS.get(new_status), new_status.value))


def validate_oversight_transition(
    current_status: str, new_status: OversightStatus
) -> OversightStatus:
    """Validate an oversight status change and return the resulting status.

    Raises:
        InvalidStateTransitionError: If the transition is illegal.
    """
    sm = OversightStateMachine(current_status=current_status)
    return OversightStatus(
        _fire(sm, _OVERSIGHT_EVENTS.get(new_status), new_status.value)
    )
