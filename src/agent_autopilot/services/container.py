"""Service container — builds and tears down every long-lived collaborator.

The FastAPI lifespan, the MCP tools and the dry-run simulation all get
their ledger, treasury, feedback service and engine from here, so there is
exactly one engine per process.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
from redis.exceptions import RedisError

from agent_autopilot.domain.agents import DEFAULT_PROFILES, build_profiles, load_profiles_file
from agent_autopilot.infrastructure.balance_source import RpcBalanceSource
from agent_autopilot.infrastructure.database.engine import (
    close_db,
    create_db_engine,
    create_session_factory,
    init_db,
)
from agent_autopilot.infrastructure.marketplace_client import MarketplaceClient
from agent_autopilot.infrastructure.redis_client import (
    IdempotencyStore,
    close_redis,
    init_redis,
)
from agent_autopilot.logging_config import get_logger
from agent_autopilot.matching.matcher import Matcher
from agent_autopilot.services.activity import ActivityLog
from agent_autopilot.services.feedback_service import FeedbackService
from agent_autopilot.services.ledger_service import BidLedger
from agent_autopilot.services.scheduler import AutopilotEngine, EngineConfig
from agent_autopilot.services.treasury_guard import TreasuryGuard
from agent_autopilot.services.treasury_service import (
    LoggingOversightNotifier,
    TreasuryService,
)
from agent_autopilot.submission.generator import SubmissionGenerator

if TYPE_CHECKING:
    import redis.asyncio as aioredis
    from sqlalchemy.ext.asyncio import AsyncEngine

    from agent_autopilot.config import Settings
    from agent_autopilot.domain.models import AgentProfile
    from agent_autopilot.domain.protocols import BalanceSource, TaskSource

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    db_engine: AsyncEngine
    http: httpx.AsyncClient
    redis: aioredis.Redis | None
    ledger: BidLedger
    treasury: TreasuryService
    feedback: FeedbackService
    engine: AutopilotEngine

    async def aclose(self) -> None:
        """Shut down in reverse order of construction."""
        await self.engine.shutdown()
        if self.redis is not None:
            await close_redis(self.redis)
        await self.http.aclose()
        await close_db(self.db_engine)


def load_squadron(settings: Settings) -> tuple[AgentProfile, ...]:
    profiles = DEFAULT_PROFILES
    if settings.agent_profiles_file:
        profiles = load_profiles_file(settings.agent_profiles_file)
        logger.info(
            "squadron.profiles_loaded",
            path=settings.agent_profiles_file,
            roles=[p.key for p in profiles],
        )
    squadron = build_profiles(settings.agent_keys, profiles)
    missing = [p.key for p in squadron if not p.has_credential]
    if missing:
        logger.warning("squadron.missing_credentials", roles=missing)
    return squadron


async def build_container(
    settings: Settings,
    source: TaskSource | None = None,
    balance_source: BalanceSource | None = None,
) -> ServiceContainer:
    """Wire every service from settings.

    `source` and `balance_source` replace the HTTP adapters (simulation, tests).
    """
    db_engine = create_db_engine(settings)
    await init_db(db_engine, create_tables=settings.db_create_tables)
    session_factory = create_session_factory(db_engine)

    http = httpx.AsyncClient(timeout=settings.marketplace_timeout_seconds)

    redis_client = None
    if settings.redis_enabled:
        try:
            redis_client = await init_redis(settings)
        except (RedisError, OSError) as exc:
            logger.warning("redis.unavailable", error=str(exc), fallback="idempotency disabled")

    ledger = BidLedger(session_factory, max_records=settings.ledger_max_records)

    treasury = TreasuryService(
        session_factory,
        guard=TreasuryGuard(settings.treasury_oversight_threshold),
        balance_source=balance_source or RpcBalanceSource.from_settings(http, settings),
        notifier=LoggingOversightNotifier(),
        wallet_address=settings.treasury_wallet_address,
        token_address=settings.treasury_token_address,
        expiration_minutes=settings.oversight_expiration_minutes,
    )

    idempotency = (
        IdempotencyStore(redis_client, settings.redis_idempotency_ttl_seconds)
        if redis_client is not None
        else None
    )
    feedback = FeedbackService(ledger, idempotency)

    matcher = Matcher(
        load_squadron(settings),
        default_role=settings.match_default_role,
        keyword_weight=settings.match_keyword_weight,
        score_cap=settings.match_score_cap,
    )
    generator = SubmissionGenerator(
        random.Random(settings.submission_seed),
        signature=settings.submission_signature,
    )
    engine = AutopilotEngine(
        source=source or MarketplaceClient.from_settings(http, settings),
        ledger=ledger,
        matcher=matcher,
        generator=generator,
        config=EngineConfig.from_settings(settings),
        activity=ActivityLog(settings.activity_log_size),
    )

    logger.info("container.ready", redis=redis_client is not None)
    return ServiceContainer(
        settings=settings,
        db_engine=db_engine,
        http=http,
        redis=redis_client,
        ledger=ledger,
        treasury=treasury,
        feedback=feedback,
        engine=engine,
    )
