"""Tests for domain enumerations."""

from __future__ import annotations

from agent_autopilot.domain.enums import (
    BidStatus,
    EngineState,
    FeedbackEventType,
    OversightStatus,
    SpendType,
    TaskCategory,
)


class TestBidStatus:
    def test_all_statuses_exist(self) -> None:
        assert {s.value for s in BidStatus} == {"pending", "won", "lost", "failed"}

    def test_status_is_str_enum(self) -> None:
        assert isinstance(BidStatus.PENDING, str)
        assert BidStatus.PENDING == "pending"


class TestOversightStatus:
    def test_all_statuses_exist(self) -> None:
        expected = {"PENDING", "APPROVED", "REJECTED", "EXPIRED"}
        assert {s.value for s in OversightStatus} == expected


class TestEngineState:
    def test_states(self) -> None:
        assert [s.value for s in EngineState] == ["STOPPED", "STARTING", "RUNNING"]


class TestSpendType:
    def test_spend_types(self) -> None:
        assert len(SpendType) == 4
        assert SpendType("HIRE_SKILL") is SpendType.HIRE_SKILL


class TestTaskCategory:
    def test_generic_is_last(self) -> None:
        # Classification walks the categories in declaration order
        assert list(TaskCategory)[-1] == TaskCategory.GENERIC
        assert list(TaskCategory)[0] == TaskCategory.DATA_COLLECTION


class TestFeedbackEventType:
    def test_wire_values(self) -> None:
        assert FeedbackEventType.SUBMISSION_WON == "submission.won"
        assert FeedbackEventType("submission.rejected") is FeedbackEventType.SUBMISSION_REJECTED
