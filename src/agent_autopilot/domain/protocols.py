"""Collaborator protocols.

The engine and the treasury service depend on these shapes rather than on
concrete adapters, so tests can inject in-memory fakes. Concrete
implementations:
    - infrastructure/marketplace_client.py  (TaskSource)
    - infrastructure/balance_source.py      (BalanceSource)
    - services/treasury_service.py          (LoggingOversightNotifier)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from decimal import Decimal

    from agent_autopilot.domain.models import (
        AgentProfile,
        OversightRequest,
        SubmissionOutcome,
        Task,
    )


@runtime_checkable
class TaskSource(Protocol):
    """The marketplace, seen from the engine."""

    async def fetch_open_tasks(self) -> list[Task]:
        """Return open tasks.

        Raises:
            SourceUnavailableError: If the listing could not be fetched.
        """
        ...

    async def submit(
        self, task: Task, agent: AgentProfile, content: str
    ) -> SubmissionOutcome:
        """Post a submission for a task on behalf of an agent.

        Raises:
            SubmitFailedError: If the marketplace rejected or errored.
        """
        ...


@runtime_checkable
class BalanceSource(Protocol):
    """Read-only treasury balance reader."""

    async def get_balance(self, address: str) -> Decimal:
        """Return the token balance of an address.

        Raises:
            BalanceUnavailableError: If the balance could not be read.
        """
        ...


@runtime_checkable
class OversightNotifier(Protocol):
    """Channel that tells the human pilot about oversight requests."""

    async def notify_created(self, request: OversightRequest) -> None: ...

    async def notify_resolved(self, request: OversightRequest) -> None: ...
