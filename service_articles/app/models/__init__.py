"""
Article data models.

- category: The closed Category set and its string parser.
- article: Domain dataclasses (Article, ArticleFilter, Page) and the
  pydantic request/response models used on the wire.
"""

from .article import (
    Article, ArticleFilter, ArticleRequest, ArticleResponse, ArticleStatsResponse,
    Page, PageRequest, PageResponse
)
from .category import Category, CategoryParseResult, parse_category

__all__ = [
    "Article",
    "ArticleFilter",
    "ArticleRequest",
    "ArticleResponse",
    "ArticleStatsResponse",
    "Category",
    "CategoryParseResult",
    "Page",
    "PageRequest",
    "PageResponse",
    "parse_category",
]
