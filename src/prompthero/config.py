"""Default paths and catalog search policy."""

from __future__ import annotations

from pathlib import Path

from platformdirs import user_data_dir

_DB_FILENAME = "prompthero.db"
_APP_NAME = "prompthero"

# Seconds SQLite waits on a locked database before the query fails.
DB_TIMEOUT_SECONDS = 5.0

CATEGORIES = (
    "development",
    "creative",
    "business",
    "education",
    "research",
    "technical",
    "general",
)
DIFFICULTIES = ("beginner", "intermediate", "advanced")
SORT_KEYS = (
    "newest",
    "oldest",
    "created_at",
    "updated_at",
    "title",
    "alphabetical",
    "rating",
    "average_rating",
    "popular",
    "usage_count",
    "total_ratings",
)
DEFAULT_SORT = "newest"

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
# Keeps (page - 1) * limit inside SQLite's 64-bit INTEGER range.
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE
MAX_SEARCH_LENGTH = 100
MAX_SEARCH_TERMS = 10

# Trending = created within this window and used at least once.
TRENDING_WINDOW_DAYS = 30

# Relevance weights per matching term.
TITLE_WEIGHT = 3
TAG_WEIGHT = 2
DESCRIPTION_WEIGHT = 2
CONTENT_WEIGHT = 1

FACET_WORKING_SET = 500
RELATED_TAG_LIMIT = 10
MIN_SUGGESTION_LENGTH = 2
SUGGESTION_LIMIT = 10
TITLE_SUGGESTION_LIMIT = 5
CATEGORY_SUGGESTION_LIMIT = 3
TAG_SUGGESTION_LIMIT = 5


def default_db_path() -> Path:
    """Return the platform-appropriate default database path."""
    data_dir = Path(user_data_dir(_APP_NAME))
    return data_dir / _DB_FILENAME
