"""Cycle Scheduler — the autopilot engine.

One engine instance per process. While RUNNING, a ticker task fires a cycle
immediately and then every cycle_interval_seconds. Each cycle:

    1. fetch open tasks from the marketplace
    2. drop ineligible tasks and tasks the ledger already holds
    3. walk the rest in reward order until max_bids_per_cycle submissions
       have succeeded: match -> threshold gate -> credential check ->
       generate -> submit -> record
    4. publish a CycleSummary and activity entries

At most one cycle is in flight. A trigger that arrives while a cycle runs
is skipped rather than queued. Stopping the engine cancels the ticker only;
an in-flight cycle finishes and records its results.

Engine lifecycle (python-statemachine):
    STOPPED -> STARTING -> RUNNING -> STOPPED
"""

from __future__ import annotations

import asyncio
import contextlib
import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog
from sqlalchemy.exc import SQLAlchemyError

from agent_autopilot.domain.enums import BidStatus, EngineState
from agent_autopilot.domain.exceptions import (
    DuplicateBidError,
    LedgerWriteError,
    SourceUnavailableError,
    SubmitFailedError,
)
from agent_autopilot.domain.models import (
    ControlResult,
    CycleSummary,
    EngineSnapshot,
    TaskSubmissionResult,
)
from agent_autopilot.domain.state_machine import EngineStateMachine
from agent_autopilot.logging_config import get_logger
from agent_autopilot.services.activity import ActivityLog

if TYPE_CHECKING:
    from agent_autopilot.config import Settings
    from agent_autopilot.domain.models import Task
    from agent_autopilot.domain.protocols import TaskSource
    from agent_autopilot.matching.matcher import Matcher
    from agent_autopilot.services.ledger_service import BidLedger
    from agent_autopilot.submission.generator import SubmissionGenerator

logger = get_logger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Engine tuning, fixed for the life of the engine."""

    cycle_interval_seconds: float = 300.0
    max_bids_per_cycle: int = 3
    min_match_score: float = 5.0
    submit_delay_seconds: float = 0.5
    # When True, a task whose bids all failed is offered again next cycle.
    retry_failed: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> EngineConfig:
        return cls(
            cycle_interval_seconds=settings.autopilot_cycle_interval_seconds,
            max_bids_per_cycle=settings.autopilot_max_bids_per_cycle,
            min_match_score=settings.autopilot_min_match_score,
            submit_delay_seconds=settings.autopilot_submit_delay_seconds,
            retry_failed=settings.autopilot_retry_failed,
        )


def _short(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


class AutopilotEngine:
    """Recurring discover -> match -> submit -> record loop."""

    def __init__(
        self,
        source: TaskSource,
        ledger: BidLedger,
        matcher: Matcher,
        generator: SubmissionGenerator,
        config: EngineConfig | None = None,
        activity: ActivityLog | None = None,
    ) -> None:
        self._source = source
        self._ledger = ledger
        self._matcher = matcher
        self._generator = generator
        self._config = config or EngineConfig()
        self._activity = activity or ActivityLog()

        self._sm = EngineStateMachine()
        self._ticker: asyncio.Task | None = None
        self._cycle_tasks: set[asyncio.Task] = set()
        self._cycle_running = False

        self._cycle_count = 0
        self._started_at: datetime | None = None
        self._last_cycle_at: datetime | None = None
        self._next_cycle_at: datetime | None = None
        self._last_result: CycleSummary | None = None

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def activity(self) -> ActivityLog:
        return self._activity

    @property
    def state(self) -> EngineState:
        return EngineState(self._sm.status)

    @property
    def is_running(self) -> bool:
        return self.state == EngineState.RUNNING

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    async def start(self) -> ControlResult:
        """Arm the ticker. The first cycle fires immediately."""
        if self.state != EngineState.STOPPED:
            return ControlResult(success=True, message="Engine already running")

        self._sm.begin_start()
        self._cycle_count = 0
        self._started_at = datetime.now(UTC)
        self._activity.info("Auto-Pilot engine started", "Running first cycle...")

        self._ticker = asyncio.create_task(self._tick(), name="autopilot-ticker")
        self._sm.ticker_armed()
        logger.info(
            "engine.started",
            interval_seconds=self._config.cycle_interval_seconds,
            max_bids_per_cycle=self._config.max_bids_per_cycle,
        )
        return ControlResult(success=True, message="Engine started")

    async def stop(self) -> ControlResult:
        """Cancel the ticker. An in-flight cycle is left to finish."""
        if self.state == EngineState.STOPPED:
            return ControlResult(success=False, message="Engine not running")

        ticker, self._ticker = self._ticker, None
        self._next_cycle_at = None
        if ticker is not None:
            ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ticker
        self._sm.halt()

        cycles = self._cycle_count
        self._activity.warning("Auto-Pilot stopped", f"Completed {cycles} cycles")
        logger.info("engine.stopped", cycles=cycles)
        return ControlResult(success=True, message=f"Stopped after {cycles} cycles")

    async def shutdown(self) -> None:
        """Stop the ticker and wait for in-flight cycles. Used by the app lifespan."""
        if self.state != EngineState.STOPPED:
            await self.stop()
        if self._cycle_tasks:
            await asyncio.gather(*self._cycle_tasks, return_exceptions=True)

    async def _tick(self) -> None:
        while True:
            self._spawn_cycle()
            interval = self._config.cycle_interval_seconds
            self._next_cycle_at = datetime.now(UTC) + timedelta(seconds=interval)
            await asyncio.sleep(interval)

    def _spawn_cycle(self) -> None:
        task = asyncio.create_task(self.run_cycle(), name="autopilot-cycle")
        self._cycle_tasks.add(task)
        task.add_done_callback(self._on_cycle_done)

    def _on_cycle_done(self, task: asyncio.Task) -> None:
        self._cycle_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("cycle.task_failed", error=str(exc), exc_info=exc)
            self._activity.error("Cycle crashed", str(exc))

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self) -> EngineSnapshot:
        now = datetime.now(UTC)
        running = self.is_running

        next_in = 0
        if running and self._next_cycle_at is not None:
            # Manual triggers do not move the ticker schedule
            due = (self._next_cycle_at - now).total_seconds()
            next_in = max(0, math.ceil(due))

        uptime = 0
        if running and self._started_at is not None:
            uptime = int((now - self._started_at).total_seconds())

        return EngineSnapshot(
            state=self.state,
            cycle_count=self._cycle_count,
            cycle_in_flight=self._cycle_running,
            last_cycle_at=self._last_cycle_at,
            last_result=self._last_result,
            started_at=self._started_at,
            seconds_until_next_cycle=next_in,
            uptime_seconds=uptime,
            activity_log=self._activity.snapshot(),
        )

    @property
    def last_result(self) -> CycleSummary | None:
        return self._last_result

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def run_cycle(self) -> CycleSummary | None:
        """Run one cycle now, or return None if one is already in flight."""
        if self._cycle_running:
            logger.info("cycle.skipped", reason="cycle already in flight")
            return None

        self._cycle_running = True
        try:
            self._cycle_count += 1
            with structlog.contextvars.bound_contextvars(cycle=self._cycle_count):
                return await self._execute_cycle(self._cycle_count)
        finally:
            self._cycle_running = False

    async def _execute_cycle(self, number: int) -> CycleSummary:
        started = datetime.now(UTC)
        self._last_cycle_at = started
        summary = CycleSummary(cycle_number=number, started_at=started)

        logger.info("cycle.started")
        self._activity.info(f"Cycle #{number} started", "Fetching tasks from the marketplace...")

        try:
            await self._scan_and_submit(summary)
        except Exception as exc:
            summary.error = f"{type(exc).__name__}: {exc}"
            logger.exception("cycle.crashed", error=summary.error)
            self._activity.error(f"Cycle #{number} failed", summary.error)
        return self._finish(summary)

    async def _scan_and_submit(self, summary: CycleSummary) -> None:
        number = summary.cycle_number

        try:
            tasks = await self._source.fetch_open_tasks()
        except SourceUnavailableError as exc:
            summary.fetch_error = exc.message
            logger.warning("cycle.fetch_failed", error=exc.message, status_code=exc.status_code)
            self._activity.error(f"Cycle #{number} failed", exc.message)
            return

        eligible = [t for t in tasks if self._matcher.is_eligible(t)]
        summary.total_tasks = len(tasks)
        summary.open_tasks = len(eligible)

        try:
            attempted = await self._ledger.attempted_task_ids(
                include_failed=not self._config.retry_failed
            )
        except SQLAlchemyError as exc:
            summary.ledger_error = str(exc)
            logger.critical("cycle.ledger_read_failed", error=str(exc))
            self._activity.error("Ledger unavailable", "Skipping submissions this cycle")
            return

        candidates = self._matcher.select_candidates(eligible, attempted)
        summary.already_attempted = len(eligible) - len(candidates)
        summary.new_tasks = len(candidates)

        logger.info(
            "cycle.scanned",
            total=summary.total_tasks,
            open=summary.open_tasks,
            already_attempted=summary.already_attempted,
            new=summary.new_tasks,
        )
        self._activity.info(
            f"Scanned {summary.total_tasks} tasks",
            f"{summary.open_tasks} open, {summary.already_attempted} already bid, "
            f"{summary.new_tasks} new",
        )

        for task in candidates:
            if summary.submissions_successful >= self._config.max_bids_per_cycle:
                break
            if not await self._process_candidate(task, summary):
                break

    async def _process_candidate(self, task: Task, summary: CycleSummary) -> bool:
        """Submit one candidate. Returns False when the cycle must stop."""
        match = self._matcher.assign(task)
        if match.score < self._config.min_match_score:
            summary.below_threshold += 1
            logger.debug("cycle.below_threshold", task_id=task.id, score=match.score)
            return True

        agent = match.agent
        if not agent.has_credential:
            summary.skipped_no_credential += 1
            logger.warning("cycle.missing_credential", task_id=task.id, agent=agent.key)
            return True

        if summary.submissions_attempted:
            await asyncio.sleep(self._config.submit_delay_seconds)
        summary.submissions_attempted += 1

        try:
            content = self._generator.generate(task, agent)
            outcome = await self._source.submit(task, agent, content)
        except SubmitFailedError as exc:
            success, status, message = False, BidStatus.FAILED, exc.message
            logger.warning(
                "cycle.submit_failed",
                task_id=task.id,
                agent=agent.display_name,
                error=exc.message,
                status_code=exc.status_code,
            )
        except Exception as exc:
            success, status, message = False, BidStatus.FAILED, f"{type(exc).__name__}: {exc}"
            logger.exception(
                "cycle.submit_crashed", task_id=task.id, agent=agent.display_name, error=message
            )
        else:
            success, status, message = True, BidStatus.PENDING, outcome.message

        result = TaskSubmissionResult(
            task_id=task.id,
            task_title=task.title,
            agent=agent.display_name,
            reward=task.reward,
            score=match.score,
            success=success,
            message=message,
        )
        summary.results.append(result)

        if success:
            summary.submissions_successful += 1
            self._activity.success(
                f"Submitted: {_short(task.title, 40)}",
                f"{agent.display_name} -> {task.reward:,} reward",
            )
        else:
            summary.submissions_failed += 1
            self._activity.error(f"Failed: {_short(task.title, 35)}", message)

        try:
            record = await self._ledger.record_attempt(
                task_id=task.id,
                agent=agent.display_name,
                amount=task.reward,
                status=status,
                message=message,
                task_title=task.title,
            )
        except DuplicateBidError:
            logger.warning("cycle.duplicate_bid", task_id=task.id)
            return True
        except LedgerWriteError as exc:
            summary.ledger_error = exc.message
            logger.critical("cycle.ledger_write_failed", task_id=task.id, error=exc.message)
            self._activity.error("Ledger write failed", exc.message)
            return False

        result.bid_id = record.id
        return True

    def _finish(self, summary: CycleSummary) -> CycleSummary:
        summary.finished_at = datetime.now(UTC)
        self._last_result = summary
        number = summary.cycle_number

        if summary.success:
            if summary.submissions_attempted:
                self._activity.info(
                    f"Cycle #{number} complete",
                    f"{summary.submissions_successful} successful, "
                    f"{summary.submissions_failed} failed",
                )
            elif summary.new_tasks == 0:
                self._activity.warning(
                    "No new tasks available",
                    f"{summary.already_attempted} tasks already have bids",
                )
            else:
                self._activity.warning(
                    "No matching tasks", "Tasks found but none matched agent skills"
                )

        logger.info(
            "cycle.completed",
            success=summary.success,
            attempted=summary.submissions_attempted,
            successful=summary.submissions_successful,
            failed=summary.submissions_failed,
            below_threshold=summary.below_threshold,
            skipped_no_credential=summary.skipped_no_credential,
        )
        return summary
