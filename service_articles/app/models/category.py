"""
Article categories and their external representation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Category(str, Enum):
    """Fixed topics an article can belong to.

    Member names are the internal form (``BASIC_INCOME``); values are the
    external form used in URLs and JSON (``basic-income``).
    """
    BASIC_INCOME = "basic-income"
    CIVIC_ENGAGEMENT = "civic-engagement"
    MEGATRENDS = "megatrends"

    def __str__(self) -> str:
        return self.value


VALID_CATEGORIES = ", ".join(category.value for category in Category)

_BY_VALUE = {category.value: category for category in Category}
_BY_NAME = {category.name: category for category in Category}


@dataclass(frozen=True)
class CategoryParseResult:
    """Either a parsed category or the reason parsing failed."""
    category: Optional[Category] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.category is not None


def parse_category(raw: Optional[str]) -> CategoryParseResult:
    """Parse an external category string.

    Accepts the hyphenated value in any case ("Basic-Income") or the internal
    name with hyphens standing in for underscores ("basic_income",
    "CIVIC-ENGAGEMENT").
    """
    if raw is None or not raw.strip():
        return CategoryParseResult(error="Category cannot be null or empty")

    candidate = raw.strip()
    category = _BY_VALUE.get(candidate.lower())
    if category is None:
        category = _BY_NAME.get(candidate.upper().replace("-", "_"))
    if category is None:
        return CategoryParseResult(
            error=f"Invalid category: {raw}. Valid categories are: {VALID_CATEGORIES}"
        )
    return CategoryParseResult(category=category)
