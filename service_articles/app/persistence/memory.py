"""
In-process article store used as the fallback tier.
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from shared.logging import get_logger

from ..models.article import Article, ArticleFilter, Page, PageRequest
from .base import ArticleStore
from .sample_data import build_sample_articles


def _newest_first(articles: Iterable[Article]) -> List[Article]:
    return sorted(articles, key=lambda a: (a.create_date, a.id), reverse=True)


class InMemoryArticleStore(ArticleStore):
    """Ordered in-memory collection of articles.

    Writers hold ``_lock`` for the whole mutation; readers work on a
    snapshot of the list and always receive copies, so a record handed out
    is never mutated behind the caller's back.
    """

    name = "memory"

    def __init__(self, articles: Optional[Iterable[Article]] = None):
        self.logger = get_logger("articles.persistence.memory")
        self._articles: List[Article] = [replace(article) for article in (articles or [])]
        self._lock = asyncio.Lock()
        self._next_id = max((a.id for a in self._articles if a.id is not None), default=0) + 1

    @classmethod
    def with_sample_data(cls, now: Optional[datetime] = None) -> "InMemoryArticleStore":
        return cls(build_sample_articles(now))

    def _snapshot(self) -> List[Article]:
        return list(self._articles)

    async def get(self, article_id: int) -> Optional[Article]:
        for article in self._snapshot():
            if article.id == article_id:
                return replace(article)
        return None

    async def list(self, criteria: ArticleFilter, page: PageRequest) -> Page:
        matching = _newest_first(a for a in self._snapshot() if criteria.matches(a))
        result = Page.from_sequence(matching, page)
        result.content = [replace(article) for article in result.content]
        return result

    async def count(self, criteria: ArticleFilter) -> int:
        return sum(1 for article in self._snapshot() if criteria.matches(article))

    async def create(self, article: Article) -> Article:
        async with self._lock:
            now = datetime.now(timezone.utc)
            record = replace(article, id=self._next_id, create_date=now, update_date=now)
            self._next_id += 1
            self._articles.append(record)

        self.logger.info("Article created in memory", article_id=record.id)
        return replace(record)

    async def update(self, article_id: int, article: Article) -> Optional[Article]:
        async with self._lock:
            for record in self._articles:
                if record.id == article_id:
                    record.title = article.title
                    record.main_img = article.main_img
                    record.author = article.author
                    record.content = article.content
                    record.category = article.category
                    record.is_premium = article.is_premium
                    record.update_date = datetime.now(timezone.utc)
                    return replace(record)
        return None

    async def delete(self, article_id: int) -> bool:
        async with self._lock:
            for index, record in enumerate(self._articles):
                if record.id == article_id:
                    del self._articles[index]
                    return True
        return False
