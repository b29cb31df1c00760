"""
Fixed sample articles that seed the in-memory fallback tier.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from ..models.article import Article
from ..models.category import Category


def build_sample_articles(now: Optional[datetime] = None) -> List[Article]:
    """Three articles, one per category, dated one to three days before ``now``."""
    now = now or datetime.now(timezone.utc)
    one_day_ago = now - timedelta(days=1)
    two_days_ago = now - timedelta(days=2)
    three_days_ago = now - timedelta(days=3)

    return [
        Article(
            id=1,
            title="Basic income policy: where it stands and where it is heading",
            main_img="https://example.com/image1.jpg",
            author="Kim Jeong-chaek",
            create_date=one_day_ago,
            update_date=one_day_ago,
            content="A detailed analysis of basic income policy...",
            category=Category.BASIC_INCOME,
            is_premium=False,
        ),
        Article(
            id=2,
            title="Civic participation and the future of democracy",
            main_img="https://example.com/image2.jpg",
            author="Lee Si-min",
            create_date=two_days_ago,
            update_date=two_days_ago,
            content="Why civic participation matters and where it goes next...",
            category=Category.CIVIC_ENGAGEMENT,
            is_premium=True,
        ),
        Article(
            id=3,
            title="Megatrends to watch this year",
            main_img="https://example.com/image3.jpg",
            author="Park Teu-rend",
            create_date=three_days_ago,
            update_date=three_days_ago,
            content="The major megatrends worth following this year...",
            category=Category.MEGATRENDS,
            is_premium=True,
        ),
    ]
