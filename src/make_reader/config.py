"""
Configuration management using pydantic-settings.

Environment variables are loaded from:
1. .env file (if present)
2. System environment variables (override .env)

Usage:
    from make_reader.config import get_settings
    settings = get_settings()
    print(settings.cache_ttl_seconds)
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Source(BaseModel):
    """
    A configured remote blog: a name plus its WordPress.com site ID.

    Frozen: sources are never mutated once the registry builds them.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    id: str


# Make WordPress blogs, keyed by their WordPress.com site ID
DEFAULT_BLOGS: list[Source] = [
    Source(name="core", id="38254163"),
    Source(name="design", id="31759332"),
    Source(name="mobile", id="39085466"),
    Source(name="accessibility", id="29901991"),
    Source(name="polyglots", id="31792945"),
    Source(name="support", id="38494741"),
    Source(name="themes", id="31759950"),
    Source(name="docs", id="31760022"),
    Source(name="community", id="42922441"),
    Source(name="plugins", id="31760039"),
    Source(name="training", id="46403572"),
    Source(name="meta", id="42105265"),
    Source(name="tv", id="94469038"),
    Source(name="flow", id="69109521"),
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_host: str = Field(
        default="public-api.wordpress.com",
        description="Host serving the /rest/v1.1/sites/{id}/posts/ endpoint",
    )

    cache_ttl_seconds: int = Field(
        default=600,
        ge=0,
        description="How long each blog's post list is cached",
    )

    max_posts: int = Field(
        default=3,
        ge=0,
        description="Maximum number of posts returned by the aggregator",
    )

    fetch_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Per-request timeout; a hung blog counts as a failed source",
    )

    user_agent: str = Field(
        default="Make-Reader/1.0",
        description="User-Agent header sent to the blog API",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    def default_blog_ids(self) -> dict[str, str]:
        """Name -> site ID mapping for the built-in blog list."""
        return {blog.name: blog.id for blog in DEFAULT_BLOGS}


def get_settings() -> Settings:
    """Get settings instance. Use this for lazy loading in tests."""
    return Settings()
