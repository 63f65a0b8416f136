"""Matcher — candidate selection and skill-based agent assignment.

Two steps, both pure in-memory computation:

    1. select_candidates: keep open tasks with a positive reward that the
       ledger has not already bid on, highest reward first (stable, so equal
       rewards keep marketplace order).
    2. assign: score the task against every profile. Each distinct skill
       keyword contained in the case-folded title/description/tags text adds
       keyword_weight points. The strictly highest score wins, so ties go to
       the first-declared profile. A task nobody matches falls back to the
       default role with score 0.

The score threshold is NOT applied here; the scheduler filters on it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agent_autopilot.domain.enums import TaskStatus
from agent_autopilot.domain.models import MatchResult

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from agent_autopilot.domain.models import AgentProfile, Task


class Matcher:
    """Scores tasks against a fixed, ordered set of agent profiles."""

    def __init__(
        self,
        profiles: Iterable[AgentProfile],
        default_role: str = "research",
        keyword_weight: float = 12.0,
        score_cap: float = 100.0,
    ) -> None:
        self._profiles = tuple(profiles)
        if not self._profiles:
            raise ValueError("Matcher needs at least one agent profile")
        self._keyword_weight = keyword_weight
        self._score_cap = score_cap
        self._default = next(
            (p for p in self._profiles if p.key == default_role),
            self._profiles[-1],
        )

    @property
    def profiles(self) -> tuple[AgentProfile, ...]:
        return self._profiles

    @property
    def default_profile(self) -> AgentProfile:
        return self._default

    @staticmethod
    def is_eligible(task: Task) -> bool:
        """Only open tasks with a positive reward can be bid on."""
        return task.status == TaskStatus.OPEN and task.reward > 0

    def select_candidates(
        self,
        tasks: Iterable[Task],
        attempted_task_ids: Collection[str],
    ) -> list[Task]:
        """Filter out ineligible and already-attempted tasks, best reward first."""
        fresh = [
            t for t in tasks
            if self.is_eligible(t) and t.id not in attempted_task_ids
        ]
        return sorted(fresh, key=lambda t: t.reward, reverse=True)

    def score(self, task: Task, profile: AgentProfile) -> tuple[float, tuple[str, ...]]:
        """Return (score, matched keywords) of one profile against a task."""
        text = task.combined_text
        matched: list[str] = []
        for skill in profile.skills:
            keyword = skill.casefold()
            if keyword and keyword not in matched and keyword in text:
                matched.append(keyword)
        raw = len(matched) * self._keyword_weight
        return min(raw, self._score_cap), tuple(matched)

    def assign(self, task: Task) -> MatchResult:
        """Pick the best-fit agent for a task."""
        best: MatchResult | None = None
        for profile in self._profiles:
            score, reasons = self.score(task, profile)
            if score > 0 and (best is None or score > best.score):
                best = MatchResult(agent=profile, score=score, reasons=reasons)
        if best is None:
            return MatchResult(agent=self._default, score=0.0)
        return best
