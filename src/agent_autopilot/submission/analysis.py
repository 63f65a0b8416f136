"""Deterministic task analysis feeding the submission generator.

Everything here is a pure function of the task: the same task always yields
the same category, quantities, entities and keywords. Randomness lives only
in the generator's phrasing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from agent_autopilot.domain.enums import TaskCategory

if TYPE_CHECKING:
    from agent_autopilot.domain.models import Task

REQUIREMENT_MAX_LENGTH = 120
MAX_KEYWORDS = 15

# Reward tiers -> complexity -> delivery timeframe
COMPLEX_REWARD = Decimal("1000")
MEDIUM_REWARD = Decimal("300")
TIMEFRAMES = {"complex": "48h", "medium": "24h", "simple": "12h"}

# First matching category wins; order is classification priority.
CATEGORY_RULES: tuple[tuple[TaskCategory, tuple[str, ...]], ...] = (
    (TaskCategory.DATA_COLLECTION, (
        "list", "compile", "collect", "gather", "scrape", "dataset", "directory",
        "accounts", "leads",
    )),
    (TaskCategory.RESEARCH, (
        "research", "analysis", "analyze", "investigate", "study", "compare",
        "evaluate", "report",
    )),
    (TaskCategory.BACKEND, (
        "api", "backend", "bot", "automation", "automate", "script", "webhook",
        "pipeline", "database", "server", "integration",
    )),
    (TaskCategory.SMART_CONTRACT, (
        "solidity", "smart contract", "smart-contract", "contract", "erc20",
        "erc-20", "nft", "mint",
    )),
    (TaskCategory.FRONTEND, (
        "frontend", "ui", "ux", "dashboard", "react", "nextjs", "website",
        "landing page", "interface",
    )),
    (TaskCategory.TRADING, (
        "trading", "trade", "swap", "defi", "arbitrage", "liquidity", "yield",
        "portfolio", "strategy",
    )),
    (TaskCategory.CONTENT, (
        "tweet", "twitter", "thread", "blog", "article", "content", "social",
        "marketing", "newsletter", "post",
    )),
)

ACTION_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("research", ("research", "investigate", "study", "explore")),
    ("list", ("list", "find", "compile", "collect", "gather", "identify")),
    ("build", ("build", "create", "develop", "implement", "code", "write")),
    ("analyze", ("analyze", "compare", "evaluate", "review", "assess")),
    ("design", ("design", "ui", "ux", "interface", "dashboard")),
    ("integrate", ("integrate", "connect", "bridge", "sync", "link")),
    ("automate", ("automate", "bot", "script", "pipeline", "workflow")),
)

REQUIREMENT_MARKERS = ("must", "should", "need", "require")

STOP_WORDS = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "being", "have",
    "has", "had", "do", "does", "did", "will", "would", "could", "should", "may",
    "might", "must", "shall", "can", "need", "to", "of", "in", "for", "on",
    "with", "at", "by", "from", "as", "into", "through", "during", "before",
    "after", "above", "below", "between", "under", "and", "but", "if", "or",
    "because", "until", "while", "this", "that", "these", "those", "i", "you",
    "we", "they", "it", "what", "which", "who", "how", "all", "each", "every",
    "both", "few", "more", "most", "other", "some", "your", "their", "them",
    "also", "than", "then", "there", "here", "about", "just", "only", "very",
    "such", "like", "make", "please", "want",
})

_WORD_RE = re.compile(r"[a-z0-9][a-z0-9\-]*")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?\n]+")
_QUANTITY_RE = re.compile(r"\d+")
_ENTITY_RE = re.compile(r"\b[A-Z][a-z]+(?:\s[A-Z][a-z]+)*")


@dataclass(frozen=True)
class TaskAnalysis:
    """What the generator knows about a task."""

    category: TaskCategory
    action: str
    subject: str
    quantity: int | None
    requirement: str
    entities: tuple[str, ...]
    keywords: tuple[str, ...]
    complexity: str

    @property
    def timeframe(self) -> str:
        return TIMEFRAMES[self.complexity]


def _contains_keyword(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


def classify(text: str) -> TaskCategory:
    """Return the first category whose keywords appear in the text."""
    for category, keywords in CATEGORY_RULES:
        if any(_contains_keyword(text, k) for k in keywords):
            return category
    return TaskCategory.GENERIC


def detect_action(text: str) -> str:
    for action, keywords in ACTION_RULES:
        if any(_contains_keyword(text, k) for k in keywords):
            return action
    return "deliver"


def extract_requirement(description: str, max_length: int = REQUIREMENT_MAX_LENGTH) -> str:
    """First requirement-like sentence, else the first sentence, truncated."""
    sentences = [
        s.strip() for s in _SENTENCE_SPLIT_RE.split(description) if len(s.strip()) > 15
    ]
    if not sentences:
        return ""
    chosen = next(
        (s for s in sentences if any(m in s.lower() for m in REQUIREMENT_MARKERS)),
        sentences[0],
    )
    if len(chosen) > max_length:
        return chosen[:max_length].rstrip() + "..."
    return chosen


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for word in _WORD_RE.findall(text):
        if len(word) > 3 and word not in STOP_WORDS and not word.isdigit():
            seen.setdefault(word, None)
        if len(seen) >= limit:
            break
    return tuple(seen)


def complexity_for(reward: Decimal) -> str:
    if reward > COMPLEX_REWARD:
        return "complex"
    if reward > MEDIUM_REWARD:
        return "medium"
    return "simple"


def analyze_task(task: Task) -> TaskAnalysis:
    """Derive every content parameter the generator needs from the task."""
    title = task.title or ""
    description = task.description or ""
    text = f"{title} {description} {' '.join(task.tags)}".lower()

    qty_match = _QUANTITY_RE.search(title)
    entities = tuple(_ENTITY_RE.findall(title)[:3])

    return TaskAnalysis(
        category=classify(text),
        action=detect_action(text),
        subject=", ".join(entities) or "requested items",
        quantity=int(qty_match.group()) if qty_match else None,
        requirement=extract_requirement(description),
        entities=entities,
        keywords=extract_keywords(f"{title} {description}".lower()),
        complexity=complexity_for(task.reward),
    )
