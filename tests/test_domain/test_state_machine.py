"""Tests for the engine, bid and oversight state machines.

These tests verify that:
    1. The engine lifecycle only moves STOPPED -> STARTING -> RUNNING -> STOPPED.
    2. Resolved bids and oversight requests are final.
    3. The validate_* helpers translate refusals into InvalidStateTransitionError.
"""

from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from agent_autopilot.domain.enums import BidStatus, OversightStatus
from agent_autopilot.domain.exceptions import InvalidStateTransitionError
from agent_autopilot.domain.state_machine import (
    BidStateMachine,
    EngineStateMachine,
    OversightStateMachine,
    validate_bid_transition,
    validate_oversight_transition,
)


class TestEngineLifecycle:
    def test_full_lifecycle(self) -> None:
        sm = EngineStateMachine()
        assert sm.status == "STOPPED"

        sm.begin_start()
        assert sm.status == "STARTING"

        sm.ticker_armed()
        assert sm.status == "RUNNING"

        sm.halt()
        assert sm.status == "STOPPED"

    def test_halt_while_starting(self) -> None:
        sm = EngineStateMachine()
        sm.begin_start()
        sm.halt()
        assert sm.status == "STOPPED"

    def test_cannot_start_twice(self) -> None:
        sm = EngineStateMachine()
        sm.begin_start()
        sm.ticker_armed()
        with pytest.raises(TransitionNotAllowed):
            sm.begin_start()

    def test_cannot_halt_when_stopped(self) -> None:
        sm = EngineStateMachine()
        with pytest.raises(TransitionNotAllowed):
            sm.halt()


class TestBidStateMachine:
    def test_pending_allowed(self) -> None:
        sm = BidStateMachine("pending")
        allowed = sm.get_allowed_events()
        assert set(allowed) == {"mark_won", "mark_lost", "mark_failed"}

    @pytest.mark.parametrize("status", ["won", "lost", "failed"])
    def test_resolved_is_final(self, status: str) -> None:
        sm = BidStateMachine(status)
        assert sm.get_allowed_events() == []

    def test_invalid_status(self) -> None:
        with pytest.raises(ValueError, match="Unknown status"):
            BidStateMachine("INVALID_STATUS")


class TestOversightStateMachine:
    def test_pending_allowed(self) -> None:
        sm = OversightStateMachine("PENDING")
        assert set(sm.get_allowed_events()) == {"approve", "reject", "expire"}

    def test_approved_is_final(self) -> None:
        sm = OversightStateMachine("APPROVED")
        assert sm.get_allowed_events() == []


class TestValidateBidTransition:
    def test_pending_to_won(self) -> None:
        assert validate_bid_transition("pending", BidStatus.WON) == BidStatus.WON

    def test_pending_to_failed(self) -> None:
        assert validate_bid_transition("pending", BidStatus.FAILED) == BidStatus.FAILED

    def test_same_status_is_idempotent(self) -> None:
        assert validate_bid_transition("won", BidStatus.WON) == BidStatus.WON

    def test_lost_cannot_become_won(self) -> None:
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_bid_transition("lost", BidStatus.WON)
        assert exc_info.value.current_state == "lost"
        assert exc_info.value.attempted_state == "won"

    def test_won_cannot_return_to_pending(self) -> None:
        with pytest.raises(InvalidStateTransitionError):
            validate_bid_transition("won", BidStatus.PENDING)


class TestValidateOversightTransition:
    def test_pending_to_approved(self) -> None:
        result = validate_oversight_transition("PENDING", OversightStatus.APPROVED)
        assert result == OversightStatus.APPROVED

    def test_pending_to_expired(self) -> None:
        result = validate_oversight_transition("PENDING", OversightStatus.EXPIRED)
        assert result == OversightStatus.EXPIRED

    def test_rejected_cannot_be_approved(self) -> None:
        with pytest.raises(InvalidStateTransitionError):
            validate_oversight_transition("REJECTED", OversightStatus.APPROVED)

    def test_cannot_move_back_to_pending(self) -> None:
        with pytest.raises(InvalidStateTransitionError):
            validate_oversight_transition("PENDING", OversightStatus.PENDING)
