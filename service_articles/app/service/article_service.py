"""
Article orchestration: filtering, pagination and tier-aware detail lookups.
"""

from typing import Dict, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..models.article import Article, ArticleFilter, Page, PageRequest
from ..models.category import Category
from ..persistence.base import ArticleStore


class ArticleService:
    """Article service implementation."""

    def __init__(self, store: ArticleStore, metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.metrics = metrics
        self.logger = get_logger("articles.article_service")

    # Listings

    async def get_all_articles(self, page: PageRequest) -> Page:
        return await self.store.list(ArticleFilter(), page)

    async def get_premium_articles(self, page: PageRequest) -> Page:
        return await self.store.list(ArticleFilter(is_premium=True), page)

    async def get_free_articles(self, page: PageRequest) -> Page:
        return await self.store.list(ArticleFilter(is_premium=False), page)

    async def get_articles_by_category(self, category: Category, page: PageRequest) -> Page:
        return await self.store.list(ArticleFilter(category=category), page)

    async def search_articles(self, keyword: str, page: PageRequest) -> Page:
        """Case-insensitive match against title or content."""
        return await self.store.list(ArticleFilter(keyword=keyword), page)

    async def get_articles_by_author(self, author: str, page: PageRequest) -> Page:
        return await self.store.list(ArticleFilter(author=author), page)

    # Detail

    async def get_article_by_id(self, article_id: int) -> Optional[Article]:
        return await self.store.get(article_id)

    async def get_free_article_by_id(self, article_id: int) -> Optional[Article]:
        article = await self.store.get(article_id)
        if article is None or article.is_premium:
            return None
        return article

    async def get_premium_article_by_id(self, article_id: int) -> Optional[Article]:
        article = await self.store.get(article_id)
        if article is None or not article.is_premium:
            return None
        return article

    # Mutations

    async def create_article(self, article: Article) -> Article:
        created = await self.store.create(article)
        self.logger.info("Article created", article_id=created.id, category=created.category.value)
        if self.metrics:
            self.metrics.record_business_event("article_created")
        return created

    async def update_article(self, article_id: int, changes: Article) -> Optional[Article]:
        """Replace every field except id and create_date.

        Fields missing from ``changes`` overwrite the stored values; there is
        no partial update.
        """
        existing = await self.store.get(article_id)
        if existing is None:
            return None

        existing.title = changes.title
        existing.main_img = changes.main_img
        existing.author = changes.author
        existing.content = changes.content
        existing.category = changes.category
        existing.is_premium = changes.is_premium

        updated = await self.store.update(article_id, existing)
        if updated is not None:
            self.logger.info("Article updated", article_id=article_id)
            if self.metrics:
                self.metrics.record_business_event("article_updated")
        return updated

    async def delete_article(self, article_id: int) -> bool:
        deleted = await self.store.delete(article_id)
        if deleted:
            self.logger.info("Article deleted", article_id=article_id)
            if self.metrics:
                self.metrics.record_business_event("article_deleted")
        return deleted

    # Statistics

    async def get_stats(self) -> Dict[str, object]:
        premium = await self.store.count(ArticleFilter(is_premium=True))
        free = await self.store.count(ArticleFilter(is_premium=False))
        by_category = {
            category.value: await self.store.count(ArticleFilter(category=category))
            for category in Category
        }
        return {
            "total": premium + free,
            "premium": premium,
            "free": free,
            "by_category": by_category,
            "storage_tier": getattr(self.store, "last_tier", self.store.name),
        }
