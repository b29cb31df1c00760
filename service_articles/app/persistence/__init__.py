"""
Article storage tiers.

- base: The async ArticleStore contract every tier satisfies.
- postgres: Durable tier on an asyncpg connection pool.
- memory: In-process fallback tier seeded with sample articles.
- tiered: Composition that prefers the durable tier and degrades to the
  fallback once per operation when the durable tier cannot serve it.

The fallback tier is not reconciled with durable storage after an outage.
"""

from .base import ArticleStore
from .memory import InMemoryArticleStore
from .postgres import PostgreSQLArticleStore
from .tiered import TieredArticleStore

__all__ = ["ArticleStore", "InMemoryArticleStore", "PostgreSQLArticleStore", "TieredArticleStore"]
