"""
Articles service for Civic Sights.
"""

from typing import Optional

from fastapi import Body, Header, Query, Response
from fastapi.responses import PlainTextResponse

from shared.base_service import BaseService
from shared.config import ArticlesConfig, get_articles_config
from shared.errors import ValidationError

from .gateway.gateway_filter import GatewayAccessPolicy, GatewayOnlyMiddleware
from .gateway.premium import PremiumContentGate
from .models.article import (
    ArticleRequest, ArticleResponse, ArticleStatsResponse, PageRequest, PageResponse
)
from .models.category import Category, parse_category
from .persistence.base import ArticleStore
from .persistence.memory import InMemoryArticleStore
from .persistence.postgres import PostgreSQLArticleStore
from .persistence.tiered import TieredArticleStore
from .service.article_service import ArticleService


class ArticlesService(BaseService):
    """Articles service implementation."""

    def __init__(self, config: Optional[ArticlesConfig] = None, store: Optional[ArticleStore] = None):
        config = config or get_articles_config()
        super().__init__("articles", config.port, config=config)

        if store is None:
            store = TieredArticleStore(
                PostgreSQLArticleStore.from_config(self.config),
                InMemoryArticleStore.with_sample_data(),
                metrics=self.metrics
            )
        self.store = store
        self.article_service = ArticleService(self.store, metrics=self.metrics)
        self.premium_gate = PremiumContentGate(self.config.paid_roles, metrics=self.metrics)

        @self.app.on_event("startup")
        async def _startup():
            await self.start()

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.stop()

        self._setup_article_routes()

    def _setup_service_middleware(self):
        """Install the gateway-only filter."""
        self.gateway_policy = GatewayAccessPolicy.from_config(self.config)
        self.app.add_middleware(GatewayOnlyMiddleware, policy=self.gateway_policy, metrics=self.metrics)

    def _setup_article_routes(self):
        """Set up article routes. Fixed paths are registered before /articles/{article_id}."""

        default_size = self.config.default_page_size
        max_size = self.config.max_page_size

        def page_query():
            return Query(0, ge=0, description="Zero-based page index")

        def size_query():
            return Query(default_size, ge=1, le=max_size, description="Page size")

        @self.app.get("/articles/health", response_class=PlainTextResponse)
        async def articles_health():
            """Liveness probe reachable without the gateway token."""
            return "News Article API is running!"

        @self.app.get("/articles", response_model=PageResponse)
        async def get_all_articles(page: int = page_query(), size: int = size_query()):
            """All articles, newest first."""
            result = await self.article_service.get_all_articles(PageRequest(page, size))
            return PageResponse.from_page(result)

        @self.app.get("/articles/premium", response_model=PageResponse)
        async def get_premium_articles(page: int = page_query(), size: int = size_query()):
            """Premium articles. Listing is not role-gated."""
            result = await self.article_service.get_premium_articles(PageRequest(page, size))
            return PageResponse.from_page(result)

        @self.app.get("/articles/free", response_model=PageResponse)
        async def get_free_articles(page: int = page_query(), size: int = size_query()):
            result = await self.article_service.get_free_articles(PageRequest(page, size))
            return PageResponse.from_page(result)

        @self.app.get("/articles/category/{category}", response_model=PageResponse)
        async def get_articles_by_category(category: str, page: int = page_query(),
                                           size: int = size_query()):
            """Articles in one category; accepts "basic-income", "BASIC_INCOME", etc."""
            parsed = parse_category(category)
            if not parsed.ok:
                raise ValidationError(
                    parsed.error,
                    details={"valid_categories": [c.value for c in Category]}
                )
            result = await self.article_service.get_articles_by_category(parsed.category, PageRequest(page, size))
            return PageResponse.from_page(result)

        @self.app.get("/articles/search", response_model=PageResponse)
        async def search_articles(keyword: str = Query(..., min_length=1, description="Title or content text"),
                                  page: int = page_query(), size: int = size_query()):
            result = await self.article_service.search_articles(keyword, PageRequest(page, size))
            return PageResponse.from_page(result)

        @self.app.get("/articles/author/{author}", response_model=PageResponse)
        async def get_articles_by_author(author: str, page: int = page_query(), size: int = size_query()):
            result = await self.article_service.get_articles_by_author(author, PageRequest(page, size))
            return PageResponse.from_page(result)

        @self.app.get("/articles/stats", response_model=ArticleStatsResponse)
        async def get_stats():
            """Catalog counts and the tier that served them."""
            return ArticleStatsResponse(**await self.article_service.get_stats())

        @self.app.get("/articles/free/{article_id}", response_model=ArticleResponse)
        async def get_free_article(article_id: int):
            article = await self.article_service.get_free_article_by_id(article_id)
            if article is None:
                return Response(status_code=404)
            return ArticleResponse.from_article(article)

        @self.app.get("/articles/premium/{article_id}", response_model=ArticleResponse)
        async def get_premium_article(article_id: int, x_user_roles: Optional[str] = Header(None)):
            """Premium detail; requires a paid role in X-User-Roles."""
            self.premium_gate.authorize(x_user_roles)

            article = await self.article_service.get_premium_article_by_id(article_id)
            if article is None:
                return Response(status_code=404)
            return ArticleResponse.from_article(article)

        @self.app.get("/articles/{article_id}", response_model=ArticleResponse)
        async def get_article(article_id: int):
            article = await self.article_service.get_article_by_id(article_id)
            if article is None:
                return Response(status_code=404)
            return ArticleResponse.from_article(article)

        @self.app.post("/articles", response_model=ArticleResponse, status_code=201)
        async def create_article(request: ArticleRequest = Body(...)):
            created = await self.article_service.create_article(request.to_article())
            return ArticleResponse.from_article(created)

        @self.app.put("/articles/{article_id}", response_model=ArticleResponse)
        async def update_article(article_id: int, request: ArticleRequest = Body(...)):
            """Replace an article. Omitted optional fields are cleared."""
            updated = await self.article_service.update_article(article_id, request.to_article())
            if updated is None:
                return Response(status_code=404)
            return ArticleResponse.from_article(updated)

        @self.app.delete("/articles/{article_id}", status_code=204)
        async def delete_article(article_id: int):
            deleted = await self.article_service.delete_article(article_id)
            return Response(status_code=204 if deleted else 404)

    async def _check_dependencies(self):
        """Check articles service dependencies."""
        dependencies = {}

        primary = getattr(self.store, "primary", self.store)
        try:
            dependencies[primary.name] = "ok" if await primary.health_check() else "error"
        except Exception:
            dependencies[primary.name] = "error"

        return dependencies

    async def start(self):
        """Start articles service components."""
        await self.store.start()
        self.logger.info("Articles service started", store=self.store.name)

    async def stop(self):
        """Stop articles service components."""
        await self.store.stop()
        self.logger.info("Articles service stopped")


def create_app(config: Optional[ArticlesConfig] = None, store: Optional[ArticleStore] = None):
    """Create articles service application."""
    service = ArticlesService(config=config, store=store)
    return service.app


if __name__ == "__main__":
    service = ArticlesService()
    service.run()
