"""
PostgreSQL persistence layer for the Articles Service.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, List, Optional, Tuple

import asyncpg

from shared.config import BaseConfig
from shared.errors import StoreUnavailableError
from shared.logging import get_logger

from ..models.article import Article, ArticleFilter, Page, PageRequest
from ..models.category import Category
from .base import ArticleStore

# Failures that mean the durable tier cannot serve the request.
UNAVAILABLE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgreSQLArticleStore(ArticleStore):
    """PostgreSQL persistence layer for articles."""

    name = "postgres"

    def __init__(self, dsn: str, connect_timeout: float = 5.0, command_timeout: float = 30.0,
                 min_size: int = 2, max_size: int = 10):
        self.dsn = dsn
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self.min_size = min_size
        self.max_size = max_size
        self.logger = get_logger("articles.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None
        self._pool_lock = asyncio.Lock()
        self._stopped = False

    @classmethod
    def from_config(cls, config: BaseConfig) -> "PostgreSQLArticleStore":
        return cls(
            config.postgres_dsn,
            connect_timeout=config.postgres_connect_timeout,
            command_timeout=config.postgres_command_timeout,
            min_size=config.postgres_min_pool_size,
            max_size=config.postgres_max_pool_size,
        )

    async def start(self):
        """Start the persistence layer.

        A failure here is not final: the pool is opened again on the next
        operation, so the store recovers once the database is reachable.
        """
        self._stopped = False
        await self._ensure_pool()
        self.logger.info("PostgreSQL persistence started")

    async def stop(self):
        """Stop the persistence layer."""
        self._stopped = True
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL persistence stopped")

    def is_available(self) -> bool:
        """True until ``stop()``; an unopened pool is opened on demand."""
        return not self._stopped

    async def _ensure_pool(self) -> asyncpg.Pool:
        """Return the open pool, creating it (and the schema) if needed."""
        if self.pool is not None and not self.pool.is_closing():
            return self.pool

        async with self._pool_lock:
            if self.pool is not None and not self.pool.is_closing():
                return self.pool

            pool = None
            try:
                pool = await asyncpg.create_pool(
                    self.dsn,
                    min_size=self.min_size,
                    max_size=self.max_size,
                    timeout=self.connect_timeout,
                    command_timeout=self.command_timeout
                )
                await self._create_tables(pool)
            except UNAVAILABLE_ERRORS as e:
                self.logger.error("Failed to open PostgreSQL pool", error=str(e))
                if pool is not None:
                    await pool.close()
                self.pool = None
                raise StoreUnavailableError(self.name, str(e)) from e

            self.pool = pool
            self.logger.info("PostgreSQL pool opened", min_size=self.min_size, max_size=self.max_size)
            return pool

    @asynccontextmanager
    async def _connection(self):
        if self._stopped:
            raise StoreUnavailableError(self.name, "store is stopped")
        pool = await self._ensure_pool()

        completed = False
        try:
            async with pool.acquire() as conn:
                yield conn
                completed = True
        except UNAVAILABLE_ERRORS as e:
            if completed:
                # The statement already ran; only releasing the connection failed
                self.logger.warning("Failed to release PostgreSQL connection", error=str(e))
                return
            self.logger.error("PostgreSQL operation failed", error=str(e))
            raise StoreUnavailableError(self.name, str(e)) from e

    async def _create_tables(self, pool: asyncpg.Pool):
        """Create database tables."""
        async with pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS news_articles (
                    id BIGSERIAL PRIMARY KEY,
                    title VARCHAR(500) NOT NULL,
                    main_img VARCHAR(1000),
                    author VARCHAR(100) NOT NULL,
                    create_date TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    update_date TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    content TEXT,
                    category VARCHAR(32) NOT NULL,
                    is_premium BOOLEAN NOT NULL DEFAULT FALSE
                );
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_news_articles_create_date ON news_articles(create_date DESC);
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_news_articles_category ON news_articles(category);
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_news_articles_premium ON news_articles(is_premium);
            """)

    @staticmethod
    def _where(criteria: ArticleFilter) -> Tuple[str, List[Any]]:
        """Build a WHERE clause with positional parameters for ``criteria``."""
        clauses: List[str] = []
        args: List[Any] = []
        if criteria.category is not None:
            args.append(criteria.category.name)
            clauses.append(f"category = ${len(args)}")
        if criteria.is_premium is not None:
            args.append(criteria.is_premium)
            clauses.append(f"is_premium = ${len(args)}")
        if criteria.keyword:
            args.append(f"%{_escape_like(criteria.keyword)}%")
            clauses.append(f"(title ILIKE ${len(args)} OR content ILIKE ${len(args)})")
        if criteria.author:
            args.append(f"%{_escape_like(criteria.author)}%")
            clauses.append(f"author ILIKE ${len(args)}")
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, args

    async def get(self, article_id: int) -> Optional[Article]:
        async with self._connection() as conn:
            row = await conn.fetchrow("SELECT * FROM news_articles WHERE id = $1", article_id)
        return self._row_to_article(row) if row else None

    async def list(self, criteria: ArticleFilter, page: PageRequest) -> Page:
        where, args = self._where(criteria)
        limit_at = len(args) + 1
        async with self._connection() as conn:
            total = await conn.fetchval(f"SELECT COUNT(*) FROM news_articles{where}", *args)
            rows = await conn.fetch(
                f"SELECT * FROM news_articles{where} "
                f"ORDER BY create_date DESC, id DESC LIMIT ${limit_at} OFFSET ${limit_at + 1}",
                *args, page.size, page.offset
            )
        return Page(
            content=[self._row_to_article(row) for row in rows],
            page=page.page,
            size=page.size,
            total_elements=total or 0,
        )

    async def count(self, criteria: ArticleFilter) -> int:
        where, args = self._where(criteria)
        async with self._connection() as conn:
            total = await conn.fetchval(f"SELECT COUNT(*) FROM news_articles{where}", *args)
        return total or 0

    async def create(self, article: Article) -> Article:
        async with self._connection() as conn:
            row = await conn.fetchrow("""
                INSERT INTO news_articles (title, main_img, author, content, category, is_premium)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING *
            """,
                article.title, article.main_img, article.author, article.content,
                article.category.name, article.is_premium
            )

        created = self._row_to_article(row)
        self.logger.info("Article saved", article_id=created.id, title=created.title)
        return created

    async def update(self, article_id: int, article: Article) -> Optional[Article]:
        async with self._connection() as conn:
            row = await conn.fetchrow("""
                UPDATE news_articles SET
                    title = $2,
                    main_img = $3,
                    author = $4,
                    content = $5,
                    category = $6,
                    is_premium = $7,
                    update_date = NOW()
                WHERE id = $1
                RETURNING *
            """,
                article_id, article.title, article.main_img, article.author, article.content,
                article.category.name, article.is_premium
            )

        if not row:
            return None
        self.logger.info("Article updated", article_id=article_id)
        return self._row_to_article(row)

    async def delete(self, article_id: int) -> bool:
        async with self._connection() as conn:
            result = await conn.execute("DELETE FROM news_articles WHERE id = $1", article_id)

        if result == "DELETE 1":
            self.logger.info("Article deleted", article_id=article_id)
            return True
        self.logger.warning("Article not found for deletion", article_id=article_id)
        return False

    def _row_to_article(self, row) -> Article:
        """Convert database row to Article object."""
        return Article(
            id=row['id'],
            title=row['title'],
            main_img=row['main_img'],
            author=row['author'],
            create_date=row['create_date'],
            update_date=row['update_date'],
            content=row['content'],
            category=Category[row['category']],
            is_premium=row['is_premium'],
        )

    async def health_check(self) -> bool:
        """Check database health."""
        try:
            async with self._connection() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except StoreUnavailableError:
            return False
