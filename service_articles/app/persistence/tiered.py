"""
Two-tier article store: durable primary with an in-memory fallback.
"""

from typing import Awaitable, Callable, Optional, TypeVar

from shared.errors import StoreUnavailableError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.tracing import trace_operation

from ..models.article import Article, ArticleFilter, Page, PageRequest
from .base import ArticleStore

T = TypeVar("T")

WRITE_OPERATIONS = frozenset({"create", "update", "delete"})


class TieredArticleStore(ArticleStore):
    """Routes each operation to the primary tier, else to the fallback.

    ``_select_tier`` picks the primary whenever it reports itself available.
    If the primary then fails with ``StoreUnavailableError`` the same
    operation runs once against the fallback. Fallback writes are never
    copied back to the primary once it recovers.
    """

    name = "tiered"

    def __init__(self, primary: ArticleStore, fallback: ArticleStore,
                 metrics: Optional[MetricsCollector] = None):
        self.primary = primary
        self.fallback = fallback
        self.metrics = metrics
        self.logger = get_logger("articles.persistence.tiered")
        self.last_tier: Optional[str] = None

    async def start(self):
        try:
            await self.primary.start()
        except StoreUnavailableError as e:
            self.logger.warning(
                "Durable store unreachable at startup, serving from fallback",
                primary=self.primary.name,
                fallback=self.fallback.name,
                error=e.message
            )
        await self.fallback.start()

    async def stop(self):
        await self.primary.stop()
        await self.fallback.stop()

    async def health_check(self) -> bool:
        return await self.primary.health_check()

    def _select_tier(self) -> ArticleStore:
        return self.primary if self.primary.is_available() else self.fallback

    async def _execute(self, operation: str, tier: ArticleStore,
                       call: Callable[[ArticleStore], Awaitable[T]]) -> T:
        with trace_operation(f"article_store.{operation}", tier=tier.name):
            if self.metrics:
                with self.metrics.time_operation("store_operation_duration_seconds",
                                                 operation=operation, tier=tier.name):
                    result = await call(tier)
            else:
                result = await call(tier)

        self.last_tier = tier.name
        if self.metrics:
            self.metrics.increment_counter("store_operations_total", operation=operation, tier=tier.name)
        return result

    def _record_fallback(self, operation: str, reason: str):
        if self.metrics:
            self.metrics.increment_counter("store_fallbacks_total", operation=operation)
        if operation in WRITE_OPERATIONS:
            self.logger.warning(
                "Write served by fallback tier is not reconciled with durable storage",
                operation=operation,
                reason=reason,
                # A connection lost mid-statement may still have committed on the primary
                primary_outcome="unknown" if reason == "primary_error" else "not_attempted"
            )

    async def _run(self, operation: str, call: Callable[[ArticleStore], Awaitable[T]]) -> T:
        tier = self._select_tier()
        if tier is self.primary:
            try:
                return await self._execute(operation, tier, call)
            except StoreUnavailableError as e:
                self.logger.warning(
                    "Durable store failed, falling back",
                    operation=operation,
                    error=e.message
                )
                self._record_fallback(operation, "primary_error")
        else:
            self.logger.debug("Durable store unavailable, using fallback", operation=operation)
            self._record_fallback(operation, "primary_unavailable")

        return await self._execute(operation, self.fallback, call)

    async def get(self, article_id: int) -> Optional[Article]:
        return await self._run("get", lambda store: store.get(article_id))

    async def list(self, criteria: ArticleFilter, page: PageRequest) -> Page:
        return await self._run("list", lambda store: store.list(criteria, page))

    async def count(self, criteria: ArticleFilter) -> int:
        return await self._run("count", lambda store: store.count(criteria))

    async def create(self, article: Article) -> Article:
        return await self._run("create", lambda store: store.create(article))

    async def update(self, article_id: int, article: Article) -> Optional[Article]:
        return await self._run("update", lambda store: store.update(article_id, article))

    async def delete(self, article_id: int) -> bool:
        return await self._run("delete", lambda store: store.delete(article_id))
