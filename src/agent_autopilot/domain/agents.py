"""Squadron agent profiles.

The default squadron has four roles. Declaration order matters: the matcher
breaks score ties in favour of the first-declared profile. A JSON file can
replace the defaults to run N roles, in the shape:

    [{"key": "backend", "display_name": "...", "skills": [...],
      "expertise": [...], "deliverables": [...], "stack": [...],
      "agent_key": "optional"}]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from agent_autopilot.domain.models import AgentProfile

DEFAULT_PROFILES: tuple[AgentProfile, ...] = (
    AgentProfile(
        key="backend",
        display_name="AP-Backend",
        skills=(
            "api", "automation", "backend", "nodejs", "python", "bot", "script",
            "scraping", "data", "server", "database", "webhook",
        ),
        expertise=(
            "REST/GraphQL APIs", "Web scraping", "Automation pipelines",
            "Database design", "Bot development",
        ),
        deliverables=("Working code", "API documentation", "Database schema", "Deployment guide"),
        stack=("Node.js", "Python", "TypeScript", "PostgreSQL", "Redis", "Docker"),
    ),
    AgentProfile(
        key="contract",
        display_name="AP-Contract",
        skills=(
            "solidity", "smart-contracts", "blockchain", "web3", "defi", "token",
            "swap", "nft", "wallet", "base", "ethereum", "crypto", "trading",
        ),
        expertise=(
            "Smart contract development", "DeFi protocols", "Token economics",
            "Security auditing",
        ),
        deliverables=("Audited contracts", "Test suite", "Deployment scripts", "Integration guide"),
        stack=("Solidity", "Foundry", "Hardhat", "Viem", "OpenZeppelin", "Base"),
    ),
    AgentProfile(
        key="frontend",
        display_name="AP-Frontend",
        skills=(
            "frontend", "react", "nextjs", "ui", "dashboard", "design", "website",
            "app", "chart", "visual", "typescript", "tailwind",
        ),
        expertise=(
            "React/Next.js apps", "Dashboard design", "Data visualization",
            "Responsive UI",
        ),
        deliverables=(
            "Production-ready code", "Component library", "Responsive design",
            "Documentation",
        ),
        stack=("Next.js", "React", "TypeScript", "TailwindCSS", "Recharts", "Framer Motion"),
    ),
    AgentProfile(
        key="research",
        display_name="AP-Research",
        skills=(
            "research", "analysis", "list", "find", "compare", "report", "strategy",
            "writing", "content", "marketing", "discover", "evaluate",
        ),
        expertise=(
            "Market research", "Competitive analysis", "Technical writing",
            "Data synthesis",
        ),
        deliverables=(
            "Comprehensive report", "Data spreadsheet", "Executive summary",
            "Actionable insights",
        ),
        stack=("Research frameworks", "Data analysis", "Technical writing", "Visualization"),
    ),
)


def _profile_from_dict(raw: dict[str, Any]) -> AgentProfile:
    key = str(raw["key"])
    return AgentProfile(
        key=key,
        display_name=str(raw.get("display_name") or f"AP-{key.capitalize()}"),
        agent_key=str(raw.get("agent_key", "")),
        skills=tuple(str(s).casefold() for s in raw.get("skills", [])),
        expertise=tuple(raw.get("expertise", [])),
        deliverables=tuple(raw.get("deliverables", [])),
        stack=tuple(raw.get("stack", [])),
    )


def load_profiles_file(path: str | Path) -> tuple[AgentProfile, ...]:
    """Load agent profiles from a JSON file.

    Raises:
        ValueError: If the file is not a non-empty list or keys repeat.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list) or not data:
        raise ValueError(f"Agent profiles file must contain a non-empty list: {path}")
    profiles = tuple(_profile_from_dict(item) for item in data)
    keys = [p.key for p in profiles]
    if len(set(keys)) != len(keys):
        raise ValueError(f"Duplicate agent role keys in {path}: {keys}")
    return profiles


def build_profiles(
    agent_keys: dict[str, str],
    profiles: tuple[AgentProfile, ...] = DEFAULT_PROFILES,
) -> tuple[AgentProfile, ...]:
    """Attach credentials to profiles, keeping declaration order.

    Credentials already present on a profile (e.g. from a profiles file)
    win over the ones from settings.
    """
    resolved = []
    for profile in profiles:
        key = profile.agent_key or agent_keys.get(profile.key, "")
        resolved.append(
            AgentProfile(
                key=profile.key,
                display_name=profile.display_name,
                agent_key=key,
                skills=profile.skills,
                expertise=profile.expertise,
                deliverables=profile.deliverables,
                stack=profile.stack,
            )
        )
    return tuple(resolved)
