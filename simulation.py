#!/usr/bin/env python3
"""Agent Autopilot — End-to-End Dry-Run Simulation.

Runs the real engine, ledger and treasury against an in-process fake
marketplace and a fake balance reader. No network, no Redis.

    Scenario 1: Cycle and de-duplication
        - Marketplace lists five tasks, engine submits the best three
        - Second cycle skips everything already in the ledger

    Scenario 2: Marketplace failure and retry
        - Marketplace answers HTTP 500 for one task -> bid recorded as failed
        - Next cycle offers the task again and it goes through

    Scenario 3: Treasury oversight
        - A 2% spend is auto-approved
        - A 20% spend is held for the human pilot, then approved

    Scenario 4: Marketplace feedback
        - A submission.won webhook resolves a pending bid

Usage:
    # SQLite file in a temp directory (default):
    uv run python simulation.py

    # Run a specific scenario:
    uv run python simulation.py --scenario 2
"""

from __future__ import annotations

import argparse
import asyncio
import tempfile
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING

# ---------------------------------------------------------------------------
# Configure structured logging BEFORE importing app modules
# ---------------------------------------------------------------------------
from agent_autopilot.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

from agent_autopilot.config import Settings  # noqa: E402
from agent_autopilot.domain.enums import (  # noqa: E402
    FeedbackEventType,
    SpendType,
    TaskStatus,
)
from agent_autopilot.domain.exceptions import SubmitFailedError  # noqa: E402
from agent_autopilot.domain.models import (  # noqa: E402
    AgentProfile,
    SpendRequest,
    SubmissionOutcome,
    Task,
)
from agent_autopilot.services.container import (  # noqa: E402
    ServiceContainer,
    build_container,
)

if TYPE_CHECKING:
    from agent_autopilot.domain.models import CycleSummary

SIMULATED_BALANCE = Decimal("10000")


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------
@dataclass
class FakeMarketplace:
    """In-process marketplace listing fixed tasks and accepting submissions."""

    tasks: list[Task] = field(default_factory=list)
    failing_task_ids: set[str] = field(default_factory=set)
    submissions: list[tuple[str, str]] = field(default_factory=list)

    async def fetch_open_tasks(self) -> list[Task]:
        return list(self.tasks)

    async def submit(self, task: Task, agent: AgentProfile, content: str) -> SubmissionOutcome:
        if task.id in self.failing_task_ids:
            raise SubmitFailedError(task.id, "Internal Server Error", status_code=500)
        self.submissions.append((task.id, agent.display_name))
        logger.info(
            "🟢 MARKETPLACE: Submission accepted",
            task_id=task.id,
            agent=agent.display_name,
            preview=content.splitlines()[0],
        )
        return SubmissionOutcome(success=True, message="Submitted")


@dataclass
class FakeBalanceSource:
    balance: Decimal = SIMULATED_BALANCE

    async def get_balance(self, address: str) -> Decimal:
        return self.balance


def sample_tasks() -> list[Task]:
    return [
        Task(
            id="task-scraper-001",
            title="Build a Python scraping bot for 50 product pages",
            description="Automation script that stores results in a database via an API.",
            reward=Decimal("1200"),
            tags=("python", "scraping"),
        ),
        Task(
            id="task-token-002",
            title="Audit an ERC-20 token swap contract on Base",
            description="Review the Solidity code for DeFi and wallet security issues.",
            reward=Decimal("800"),
            tags=("solidity", "defi"),
        ),
        Task(
            id="task-dashboard-003",
            title="Design a React dashboard with charts",
            description="Next.js UI with Tailwind and a responsive visual layout.",
            reward=Decimal("450"),
            tags=("react", "ui"),
        ),
        Task(
            id="task-report-004",
            title="Research report comparing L2 marketing strategy",
            description="Find and evaluate content from competitors; write an analysis.",
            reward=Decimal("300"),
        ),
        Task(
            id="task-poem-005",
            title="Compose a haiku",
            description="Seventeen syllables, nothing more.",
            reward=Decimal("25"),
        ),
        Task(
            id="task-claimed-006",
            title="Backend API for a webhook relay",
            description="Already taken by someone else.",
            reward=Decimal("5000"),
            status=TaskStatus.CLAIMED,
        ),
    ]


# ---------------------------------------------------------------------------
# Container lifecycle helpers
# ---------------------------------------------------------------------------
def simulation_settings(db_dir: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{db_dir / 'simulation.db'}",
        redis_enabled=False,
        autopilot_autostart=False,
        autopilot_submit_delay_seconds=0.0,
        autopilot_max_bids_per_cycle=3,
        submission_seed=42,
        backend_api_key="sim-backend",
        contract_api_key="sim-contract",
        frontend_api_key="sim-frontend",
        research_api_key="sim-research",
        treasury_wallet_address="0x" + "A" * 40,
    )


async def open_container(db_dir: Path, market: FakeMarketplace) -> ServiceContainer:
    return await build_container(
        simulation_settings(db_dir),
        source=market,
        balance_source=FakeBalanceSource(),
    )


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    """Print a prominent banner."""
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width + "\n")


def section(text: str) -> None:
    """Print a section header."""
    print(f"\n--- {text} ---\n")


def print_summary(summary: CycleSummary | None) -> None:
    """Pretty-print a cycle summary."""
    if summary is None:
        print("  ⏳ Cycle skipped (another cycle in flight)")
        return
    icon = "✅" if summary.success else "❌"
    print(f"  {icon} Cycle #{summary.cycle_number}: {summary.message}")
    print(
        f"  Tasks: {summary.total_tasks} total, {summary.open_tasks} open, "
        f"{summary.already_attempted} already bid, {summary.new_tasks} new"
    )
    if summary.below_threshold:
        print(f"  Below match threshold: {summary.below_threshold}")
    for result in summary.results:
        mark = "✅" if result.success else "❌"
        print(
            f"    {mark} {result.task_id} -> {result.agent} "
            f"(score {result.score:.0f}, reward {result.reward}): {result.message}"
        )


async def print_ledger(container: ServiceContainer) -> None:
    """Print the ledger contents, newest first."""
    stats = await container.ledger.stats()
    print(f"\n  📜 Ledger: {stats.to_dict()}")
    for bid in await container.ledger.recent(limit=20):
        print(f"    [{bid.status.value:>7}] {bid.task_id} by {bid.agent} ({bid.id})")
    print()


# ===========================================================================
# Scenario 1: Cycle and de-duplication
# ===========================================================================
async def scenario_1_cycle_and_dedupe(db_dir: Path) -> None:
    banner("SCENARIO 1: Cycle and De-duplication")
    market = FakeMarketplace(tasks=sample_tasks())
    container = await open_container(db_dir, market)
    try:
        section("Cycle 1: submit the best-paying matched tasks")
        print_summary(await container.engine.run_cycle())

        section("Cycle 2: ledger already holds those tasks")
        print_summary(await container.engine.run_cycle())

        await print_ledger(container)
    finally:
        await container.aclose()


# ===========================================================================
# Scenario 2: Marketplace failure and retry
# ===========================================================================
async def scenario_2_failure_and_retry(db_dir: Path) -> None:
    banner("SCENARIO 2: Marketplace Failure and Retry")
    tasks = sample_tasks()
    market = FakeMarketplace(tasks=tasks[:1], failing_task_ids={tasks[0].id})
    container = await open_container(db_dir, market)
    try:
        section("Cycle 1: marketplace returns HTTP 500")
        print_summary(await container.engine.run_cycle())

        section("Cycle 2: marketplace recovered, task offered again")
        market.failing_task_ids.clear()
        print_summary(await container.engine.run_cycle())

        await print_ledger(container)
    finally:
        await container.aclose()


# ===========================================================================
# Scenario 3: Treasury oversight
# ===========================================================================
async def scenario_3_treasury_oversight(db_dir: Path) -> None:
    banner("SCENARIO 3: Treasury Oversight")
    container = await open_container(db_dir, FakeMarketplace())
    treasury = container.treasury
    try:
        print(f"  💰 Balance: {await treasury.get_balance()} tokens")
        print(f"  🛡️  Oversight threshold: {treasury.threshold_ratio:.0%}")

        section("Small spend (2% of treasury)")
        small = await treasury.request_spend(
            SpendRequest(type=SpendType.HIRE_SKILL, amount=Decimal("200"), recipient="0xskill")
        )
        print(f"  {'✅' if small.approved else '⏸️ '} {small.reason}")

        section("Large spend (20% of treasury)")
        large = await treasury.request_spend(
            SpendRequest(
                type=SpendType.BUY_AD_SPACE,
                amount=Decimal("2000"),
                recipient="0xads",
                metadata={"campaign": "launch"},
            )
        )
        print(f"  {'✅' if large.approved else '⏸️ '} {large.reason}")

        pending = await treasury.list_oversight()
        print(f"  📋 Oversight queue: {[(r.id[:8], r.status.value) for r in pending]}")

        if large.oversight_request is not None:
            section("Human pilot approves the held spend")
            resolved = await treasury.approve(large.oversight_request.id, approver="pilot@squadron")
            print(f"  ✅ {resolved.id[:8]} -> {resolved.status.value} by {resolved.approved_by}")
    finally:
        await container.aclose()


# ===========================================================================
# Scenario 4: Marketplace feedback
# ===========================================================================
async def scenario_4_feedback(db_dir: Path) -> None:
    banner("SCENARIO 4: Marketplace Feedback")
    market = FakeMarketplace(tasks=sample_tasks()[1:2])
    container = await open_container(db_dir, market)
    try:
        summary = await container.engine.run_cycle()
        print_summary(summary)

        task_id = sample_tasks()[1].id
        section("Webhook: submission.won")
        result = await container.feedback.handle(
            FeedbackEventType.SUBMISSION_WON,
            event_id="evt-sim-1",
            task_id=task_id,
            message="Selected by the poster",
        )
        if result.bid is not None:
            print(f"  🏆 {result.bid.task_id} -> {result.bid.status.value}")

        await print_ledger(container)
    finally:
        await container.aclose()


# ===========================================================================
# Main
# ===========================================================================
SCENARIOS = {
    1: scenario_1_cycle_and_dedupe,
    2: scenario_2_failure_and_retry,
    3: scenario_3_treasury_oversight,
    4: scenario_4_feedback,
}


async def run(scenario: int = 0) -> None:
    """Run one scenario, or all of them when scenario is 0."""
    print("\n" + "🚀" * 35)
    print("  AGENT AUTOPILOT — DRY-RUN SIMULATION")
    print("  Fake marketplace, real ledger, real treasury guard.")
    print("🚀" * 35 + "\n")

    if scenario and scenario not in SCENARIOS:
        print(f"Unknown scenario {scenario}. Available: {', '.join(map(str, SCENARIOS))}")
        return

    selected = [SCENARIOS[scenario]] if scenario else list(SCENARIOS.values())
    for fn in selected:
        # Each scenario gets its own ledger file
        with tempfile.TemporaryDirectory(prefix="autopilot-sim-") as tmp:
            await fn(Path(tmp))

    print("\n" + "=" * 70)
    print("  ✅ SIMULATION COMPLETED")
    print("=" * 70 + "\n")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Agent Autopilot Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1-4). Default: run all.",
    )
    args = parser.parse_args()
    asyncio.run(run(args.scenario))
