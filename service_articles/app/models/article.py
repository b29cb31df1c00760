"""
Article data models for the Articles Service.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .category import Category, parse_category


@dataclass
class Article:
    """News article as held by the stores."""
    title: str
    author: str
    category: Category
    id: Optional[int] = None
    main_img: Optional[str] = None
    content: Optional[str] = None
    is_premium: bool = False
    create_date: Optional[datetime] = None
    update_date: Optional[datetime] = None


@dataclass
class ArticleFilter:
    """Listing criteria. Every criterion that is set must match."""
    category: Optional[Category] = None
    is_premium: Optional[bool] = None
    keyword: Optional[str] = None
    author: Optional[str] = None

    def matches(self, article: Article) -> bool:
        if self.category is not None and article.category != self.category:
            return False
        if self.is_premium is not None and article.is_premium != self.is_premium:
            return False
        if self.keyword:
            needle = self.keyword.lower()
            haystacks = (article.title or "", article.content or "")
            if not any(needle in text.lower() for text in haystacks):
                return False
        if self.author:
            if self.author.lower() not in (article.author or "").lower():
                return False
        return True


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page window."""
    page: int = 0
    size: int = 25

    def __post_init__(self):
        if self.page < 0:
            raise ValueError("page must not be negative")
        if self.size < 1:
            raise ValueError("size must be at least 1")

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass
class Page:
    """A window over an ordered article sequence."""
    content: List[Article]
    page: int
    size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size) if self.size else 0

    @property
    def first(self) -> bool:
        return self.page == 0

    @property
    def last(self) -> bool:
        return self.page + 1 >= self.total_pages

    @classmethod
    def from_sequence(cls, articles: List[Article], request: PageRequest) -> "Page":
        """Slice an already ordered sequence into a page."""
        start = request.offset
        window = articles[start:start + request.size] if start < len(articles) else []
        return cls(content=window, page=request.page, size=request.size, total_elements=len(articles))


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ArticleRequest(_CamelModel):
    """Request body for creating or replacing an article."""
    title: str = Field(..., min_length=1, max_length=500, description="Article title")
    main_img: Optional[str] = Field(None, max_length=1000, description="Main image URL")
    author: str = Field(..., min_length=1, max_length=100, description="Author name")
    content: Optional[str] = Field(None, description="Article body")
    category: Category = Field(..., description="Article category")
    is_premium: bool = Field(False, description="Whether a paid role is needed for detail access")

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: Any) -> Any:
        if isinstance(value, Category):
            return value
        if value is None or isinstance(value, str):
            result = parse_category(value)
            if not result.ok:
                raise ValueError(result.error)
            return result.category
        return value

    def to_article(self) -> Article:
        return Article(
            title=self.title,
            main_img=self.main_img,
            author=self.author,
            content=self.content,
            category=self.category,
            is_premium=self.is_premium,
        )


class ArticleResponse(_CamelModel):
    """Response model for a single article."""
    id: int
    title: str
    main_img: Optional[str] = None
    author: str
    create_date: datetime
    update_date: datetime
    content: Optional[str] = None
    category: Category
    is_premium: bool

    @classmethod
    def from_article(cls, article: Article) -> "ArticleResponse":
        return cls(
            id=article.id,
            title=article.title,
            main_img=article.main_img,
            author=article.author,
            create_date=article.create_date,
            update_date=article.update_date,
            content=article.content,
            category=article.category,
            is_premium=article.is_premium,
        )


class PageResponse(_CamelModel):
    """Response model for a page of articles."""
    content: List[ArticleResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int
    number_of_elements: int
    first: bool
    last: bool
    empty: bool

    @classmethod
    def from_page(cls, page: Page) -> "PageResponse":
        return cls(
            content=[ArticleResponse.from_article(article) for article in page.content],
            page=page.page,
            size=page.size,
            total_elements=page.total_elements,
            total_pages=page.total_pages,
            number_of_elements=len(page.content),
            first=page.first,
            last=page.last,
            empty=not page.content,
        )


class ArticleStatsResponse(_CamelModel):
    """Response model for catalog statistics."""
    total: int
    premium: int
    free: int
    by_category: Dict[str, int] = Field(default_factory=dict)
    storage_tier: Optional[str] = None
