"""
Storage contract shared by every article store tier.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.article import Article, ArticleFilter, Page, PageRequest


class ArticleStore(ABC):
    """Async read/write contract for article storage.

    Listings are always ordered by ``create_date`` descending, newest id
    first on ties.
    """

    name = "store"

    async def start(self):
        """Acquire resources. Stores without resources need not override."""

    async def stop(self):
        """Release resources."""

    def is_available(self) -> bool:
        """Whether the store can currently be asked to serve an operation."""
        return True

    async def health_check(self) -> bool:
        return self.is_available()

    @abstractmethod
    async def get(self, article_id: int) -> Optional[Article]:
        """Fetch one article by id."""

    @abstractmethod
    async def list(self, criteria: ArticleFilter, page: PageRequest) -> Page:
        """Return a page of articles matching ``criteria``."""

    @abstractmethod
    async def count(self, criteria: ArticleFilter) -> int:
        """Count articles matching ``criteria``."""

    @abstractmethod
    async def create(self, article: Article) -> Article:
        """Persist a new article; the store assigns id and both timestamps."""

    @abstractmethod
    async def update(self, article_id: int, article: Article) -> Optional[Article]:
        """Overwrite every mutable field of an existing article and refresh ``update_date``."""

    @abstractmethod
    async def delete(self, article_id: int) -> bool:
        """Remove an article. Returns False when no article had that id."""
