"""
Unit tests for the PostgreSQL article store.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from service_articles.app.models.article import Article, ArticleFilter, PageRequest
from service_articles.app.models.category import Category
from service_articles.app.persistence.postgres import PostgreSQLArticleStore
from shared.config import ArticlesConfig
from shared.errors import StoreUnavailableError

CREATED = datetime(2026, 2, 1, 9, 30, tzinfo=timezone.utc)


def make_pool(conn):
    pool = MagicMock()
    pool.is_closing.return_value = False
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=False)
    pool.close = AsyncMock()
    return pool


def make_row(**overrides):
    row = {
        "id": 7,
        "title": "Stored article",
        "main_img": None,
        "author": "Writer",
        "create_date": CREATED,
        "update_date": CREATED,
        "content": "Body",
        "category": "CIVIC_ENGAGEMENT",
        "is_premium": True,
    }
    row.update(overrides)
    return row


class TestPostgreSQLArticleStore:
    """Test cases for PostgreSQLArticleStore."""

    @pytest.fixture
    def conn(self):
        """Mock database connection."""
        return AsyncMock()

    @pytest.fixture
    def store(self, conn):
        """Create store with a mocked, open pool."""
        store = PostgreSQLArticleStore("postgres://test/db")
        store.pool = make_pool(conn)
        return store

    def test_from_config(self):
        """Test pool settings come from configuration."""
        config = ArticlesConfig(postgres_dsn="postgres://db/articles", postgres_max_pool_size=4)

        store = PostgreSQLArticleStore.from_config(config)

        assert store.dsn == "postgres://db/articles"
        assert store.max_size == 4
        assert store.connect_timeout == config.postgres_connect_timeout

    @pytest.mark.asyncio
    async def test_available_until_stopped(self, store):
        """Test availability means the store has not been stopped."""
        assert PostgreSQLArticleStore("postgres://test/db").is_available()

        await store.stop()

        assert not store.is_available()
        with pytest.raises(StoreUnavailableError):
            await store.get(1)

    @pytest.mark.asyncio
    async def test_unreachable_database_raises(self):
        """Test operations fail with StoreUnavailableError when no pool can be opened."""
        store = PostgreSQLArticleStore("postgres://test/db")

        with patch(
            "service_articles.app.persistence.postgres.asyncpg.create_pool",
            new=AsyncMock(side_effect=OSError("connection refused"))
        ):
            with pytest.raises(StoreUnavailableError) as excinfo:
                await store.get(1)

            assert not await store.health_check()

        assert excinfo.value.store == "postgres"
        assert store.pool is None

    @pytest.mark.asyncio
    async def test_pool_opened_after_failed_start(self, conn):
        """Test the store recovers once the database becomes reachable."""
        store = PostgreSQLArticleStore("postgres://test/db")
        conn.fetchrow.return_value = make_row(id=1)
        create_pool = AsyncMock(side_effect=[OSError("connection refused"), make_pool(conn)])

        with patch("service_articles.app.persistence.postgres.asyncpg.create_pool", new=create_pool):
            with pytest.raises(StoreUnavailableError):
                await store.start()

            assert store.is_available()

            first = await store.get(1)
            second = await store.get(1)

        assert first.id == 1
        assert second.id == 1
        assert create_pool.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_operations_share_one_pool(self, conn):
        """Test concurrent first operations open a single pool."""
        store = PostgreSQLArticleStore("postgres://test/db")
        conn.fetchrow.return_value = make_row()
        create_pool = AsyncMock(return_value=make_pool(conn))

        with patch("service_articles.app.persistence.postgres.asyncpg.create_pool", new=create_pool):
            results = await asyncio.gather(*(store.get(7) for _ in range(5)))

        assert [article.id for article in results] == [7] * 5
        assert create_pool.await_count == 1

    @pytest.mark.asyncio
    async def test_release_failure_keeps_committed_result(self, store, conn):
        """Test a failure returning the connection does not discard a committed write."""
        conn.fetchrow.return_value = make_row(id=12)
        store.pool.acquire.return_value.__aexit__ = AsyncMock(side_effect=ConnectionResetError("reset"))

        created = await store.create(Article(title="New", author="Writer", category=Category.CIVIC_ENGAGEMENT))

        assert created.id == 12

    @pytest.mark.asyncio
    async def test_get_maps_row(self, store, conn):
        """Test a row is mapped to an Article."""
        conn.fetchrow.return_value = make_row()

        article = await store.get(7)

        assert article.id == 7
        assert article.category is Category.CIVIC_ENGAGEMENT
        assert article.is_premium is True
        assert article.create_date == CREATED
        conn.fetchrow.assert_called_once_with("SELECT * FROM news_articles WHERE id = $1", 7)

    @pytest.mark.asyncio
    async def test_get_missing(self, store, conn):
        """Test a missing row yields None."""
        conn.fetchrow.return_value = None

        assert await store.get(99) is None

    @pytest.mark.asyncio
    async def test_list_builds_filtered_query(self, store, conn):
        """Test list counts, orders and pages with positional parameters."""
        conn.fetchval.return_value = 3
        conn.fetch.return_value = [make_row(id=9), make_row(id=8)]

        page = await store.list(
            ArticleFilter(category=Category.MEGATRENDS, is_premium=True),
            PageRequest(1, 2)
        )

        assert [a.id for a in page.content] == [9, 8]
        assert page.total_elements == 3
        assert page.page == 1

        count_sql, *count_args = conn.fetchval.call_args.args
        assert "WHERE category = $1 AND is_premium = $2" in count_sql
        assert count_args == ["MEGATRENDS", True]

        list_sql, *list_args = conn.fetch.call_args.args
        assert "ORDER BY create_date DESC, id DESC LIMIT $3 OFFSET $4" in list_sql
        assert list_args == ["MEGATRENDS", True, 2, 2]

    @pytest.mark.asyncio
    async def test_keyword_is_escaped(self, store, conn):
        """Test LIKE wildcards in the keyword are escaped."""
        conn.fetchval.return_value = 0

        await store.count(ArticleFilter(keyword="50%_off"))

        sql, pattern = conn.fetchval.call_args.args
        assert "(title ILIKE $1 OR content ILIKE $1)" in sql
        assert pattern == "%50\\%\\_off%"

    @pytest.mark.asyncio
    async def test_create_stores_category_name(self, store, conn):
        """Test create persists the category name and maps the returned row."""
        conn.fetchrow.return_value = make_row(id=11, category="BASIC_INCOME", is_premium=False)
        article = Article(title="New", author="Writer", category=Category.BASIC_INCOME)

        created = await store.create(article)

        assert created.id == 11
        assert created.category is Category.BASIC_INCOME
        assert "BASIC_INCOME" in conn.fetchrow.call_args.args

    @pytest.mark.asyncio
    async def test_update_missing(self, store, conn):
        """Test update of an unknown id yields None."""
        conn.fetchrow.return_value = None
        article = Article(title="New", author="Writer", category=Category.BASIC_INCOME)

        assert await store.update(99, article) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, expected", [("DELETE 1", True), ("DELETE 0", False)])
    async def test_delete(self, store, conn, status, expected):
        """Test delete reports whether a row was removed."""
        conn.execute.return_value = status

        assert await store.delete(7) is expected

    @pytest.mark.asyncio
    async def test_connection_errors_are_translated(self, store, conn):
        """Test transport failures surface as StoreUnavailableError."""
        conn.fetchrow.side_effect = ConnectionRefusedError("connection refused")

        with pytest.raises(StoreUnavailableError):
            await store.get(1)

    @pytest.mark.asyncio
    async def test_health_check(self, store, conn):
        """Test health check runs a trivial query."""
        conn.fetchval.return_value = 1

        assert await store.health_check()

        conn.fetchval.side_effect = OSError("down")
        assert not await store.health_check()

    @pytest.mark.asyncio
    async def test_start_failure(self):
        """Test a failed pool creation raises StoreUnavailableError."""
        store = PostgreSQLArticleStore("postgres://test/db")

        with patch(
            "service_articles.app.persistence.postgres.asyncpg.create_pool",
            new=AsyncMock(side_effect=OSError("connection refused"))
        ):
            with pytest.raises(StoreUnavailableError):
                await store.start()

        assert store.pool is None

    @pytest.mark.asyncio
    async def test_start_creates_schema(self, conn):
        """Test start opens the pool and creates the table."""
        store = PostgreSQLArticleStore("postgres://test/db")
        pool = make_pool(conn)

        with patch(
            "service_articles.app.persistence.postgres.asyncpg.create_pool",
            new=AsyncMock(return_value=pool)
        ):
            await store.start()

        assert store.is_available()
        assert "CREATE TABLE IF NOT EXISTS news_articles" in conn.execute.call_args_list[0].args[0]

        await store.stop()

        pool.close.assert_awaited_once()
        assert store.pool is None
        assert not store.is_available()

    @pytest.mark.asyncio
    async def test_schema_failure_closes_pool(self, conn):
        """Test a pool whose schema setup fails is closed and not kept."""
        store = PostgreSQLArticleStore("postgres://test/db")
        pool = make_pool(conn)
        conn.execute.side_effect = OSError("connection lost")

        with patch(
            "service_articles.app.persistence.postgres.asyncpg.create_pool",
            new=AsyncMock(return_value=pool)
        ):
            with pytest.raises(StoreUnavailableError):
                await store.start()

        pool.close.assert_awaited_once()
        assert store.pool is None
