"""HTTP adapter for the task marketplace.

Two calls:
    - fetch_open_tasks: GET the open-task listing with the master key.
    - submit: POST a submission with the agent's own key.

Neither call retries. A failed fetch surfaces as SourceUnavailableError and
the next scheduled cycle is the retry; a failed submit surfaces as
SubmitFailedError and is recorded as a failed bid.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

import httpx

from agent_autopilot.domain.enums import TaskStatus
from agent_autopilot.domain.exceptions import SourceUnavailableError, SubmitFailedError
from agent_autopilot.domain.models import SubmissionOutcome, Task
from agent_autopilot.logging_config import get_logger

if TYPE_CHECKING:
    from agent_autopilot.config import Settings
    from agent_autopilot.domain.models import AgentProfile

logger = get_logger(__name__)


def _to_reward(raw: Any) -> Decimal:
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return Decimal(0)
    if not value.is_finite() or value < 0:
        return Decimal(0)
    return value


def parse_task(raw: dict[str, Any]) -> Task | None:
    """Normalize one marketplace record, or return None to drop it."""
    task_id = raw.get("id")
    if task_id in (None, ""):
        logger.debug("marketplace.task_dropped", reason="missing id")
        return None
    try:
        status = TaskStatus(str(raw.get("status") or TaskStatus.OPEN).lower())
    except ValueError:
        logger.debug("marketplace.task_dropped", task_id=task_id, status=raw.get("status"))
        return None

    tags = raw.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]

    return Task(
        id=str(task_id),
        title=str(raw.get("title") or ""),
        description=str(raw.get("description") or ""),
        reward=_to_reward(raw.get("reward", raw.get("budget", 0))),
        tags=tuple(str(t) for t in tags),
        status=status,
    )


def _error_message(response: httpx.Response) -> str:
    """Prefer body.error, then body.message, then a generic status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "message"):
            if body.get(key):
                return str(body[key])
    return f"Failed ({response.status_code})"


class MarketplaceClient:
    """Task source backed by the marketplace REST API.

    The httpx client is shared and owned by the service container.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        api_key: str = "",
        tasks_path: str = "/jobs/match",
        timeout: float = 30.0,
    ) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._tasks_path = tasks_path
        self._timeout = timeout

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient, settings: Settings) -> MarketplaceClient:
        return cls(
            http,
            base_url=settings.marketplace_base_url,
            api_key=settings.marketplace_api_key,
            tasks_path=settings.marketplace_tasks_path,
            timeout=settings.marketplace_timeout_seconds,
        )

    def _headers(self, api_key: str) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def fetch_open_tasks(self) -> list[Task]:
        url = f"{self._base_url}{self._tasks_path}"
        try:
            response = await self._http.get(
                url, headers=self._headers(self._api_key), timeout=self._timeout
            )
        except httpx.TimeoutException as exc:
            raise SourceUnavailableError(f"Timed out fetching tasks: {exc}") from exc
        except httpx.HTTPError as exc:
            raise SourceUnavailableError(f"Transport error fetching tasks: {exc}") from exc

        if not response.is_success:
            raise SourceUnavailableError(
                _error_message(response), status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise SourceUnavailableError("Task listing is not valid JSON") from exc

        if isinstance(body, dict):
            records = body.get("jobs", body.get("tasks"))
        else:
            records = body
        if not isinstance(records, list):
            raise SourceUnavailableError("Task listing has an unexpected shape")

        tasks = [t for t in (parse_task(r) for r in records if isinstance(r, dict)) if t]
        logger.info("marketplace.tasks_fetched", received=len(records), parsed=len(tasks))
        return tasks

    async def submit(self, task: Task, agent: AgentProfile, content: str) -> SubmissionOutcome:
        url = f"{self._base_url}/jobs/{task.id}/submit"
        try:
            response = await self._http.post(
                url,
                json={"submission": content},
                headers=self._headers(agent.agent_key),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            raise SubmitFailedError(task.id, "Submission timed out") from exc
        except httpx.HTTPError as exc:
            raise SubmitFailedError(task.id, f"Transport error: {exc}") from exc

        if not response.is_success:
            raise SubmitFailedError(
                task.id, _error_message(response), status_code=response.status_code
            )

        logger.info(
            "marketplace.submitted",
            task_id=task.id,
            agent=agent.display_name,
            status_code=response.status_code,
        )
        return SubmissionOutcome(success=True, message="Submitted")
