"""
Usage accounting for AI calls.
"""
import logging
from abc import ABC, abstractmethod

from sqlalchemy.ext.asyncio import async_sessionmaker

from ..config import Settings
from ..models.usage import AiUsageLog
from ..schemas.usage import UsageEntry

logger = logging.getLogger(__name__)


def estimate_cost(input_tokens: int, output_tokens: int, settings: Settings) -> float:
    """USD cost of a call at the configured per-million-token rates."""
    cost = (
        input_tokens * settings.usage_input_rate_per_million / 1_000_000
        + output_tokens * settings.usage_output_rate_per_million / 1_000_000
    )
    return round(cost, 9)


class UsageLogger(ABC):
    """Records token usage. Implementations may fail; callers must not depend on them."""

    @abstractmethod
    async def log_usage(self, entry: UsageEntry) -> None:
        ...


class SqlUsageLogger(UsageLogger):
    """Writes one ai_usage_logs row per entry."""

    def __init__(self, session_maker: async_sessionmaker, settings: Settings):
        self.session_maker = session_maker
        self.settings = settings

    async def log_usage(self, entry: UsageEntry) -> None:
        cost = estimate_cost(entry.input_tokens, entry.output_tokens, self.settings)
        async with self.session_maker() as session:
            session.add(AiUsageLog(
                requester_id=entry.requester_id,
                subject_id=entry.subject_id,
                model=entry.model_name,
                input_tokens=entry.input_tokens,
                output_tokens=entry.output_tokens,
                total_cost=cost,
                operation_type=entry.operation_type,
            ))
            await session.commit()
        logger.info(
            f"[AI Usage] Logged: ${cost} ({entry.input_tokens}in/{entry.output_tokens}out) "
            f"for {entry.subject_id or 'unknown subject'}"
        )
