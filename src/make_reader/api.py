"""
FastAPI application for the post aggregator.

This module serves the aggregated post list as JSON to whatever renders
the page. It does no formatting of its own.

Endpoints:
- GET /: API info
- GET /health: Health status and effective configuration
- GET /posts: Most recent posts across all blogs

Usage:
    # Run with uvicorn
    uvicorn make_reader.api:app --reload

    # Or use the main.py entrypoint
    python -m make_reader.main serve
"""

from datetime import UTC, datetime
from typing import Annotated

import structlog
from fastapi import Depends, FastAPI, Query
from pydantic import BaseModel, Field

from make_reader.graph import PostAggregator, PostRecord, get_aggregator

logger = structlog.get_logger()


# ========================================
# FASTAPI APP
# ========================================

app = FastAPI(
    title="Make WordPress Reader",
    description="Most recent posts from the Make WordPress blogs",
    version="1.0.0",
)


# ========================================
# PYDANTIC MODELS
# ========================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Overall health status")
    source_count: int = Field(description="Blogs configured after filters")
    cache_ttl_seconds: float = Field(description="Lifetime of each cached post list")
    max_posts: int = Field(description="Default number of posts returned")
    timestamp: datetime = Field(description="Current server time")


class Post(BaseModel):
    """A single post."""

    title: str = Field(description="Post title, HTML entities decoded")
    url: str | None = Field(description="Link to the post")
    published_at: datetime = Field(description="Publication date")
    source: str = Field(description="Name of the blog it came from")


class PostsResponse(BaseModel):
    """Response containing the aggregated posts."""

    posts: list[Post] = Field(description="Posts, newest first")
    count: int = Field(description="Number of posts returned")


def format_post_for_api(record: PostRecord) -> Post:
    """Drop the raw API payload; keep what a renderer needs."""
    return Post(
        title=record["title"],
        url=record["url"],
        published_at=record["published_at"],
        source=record["source_name"],
    )


# ========================================
# ENDPOINTS
# ========================================


@app.get("/", tags=["Health"])
async def root():
    """Basic API info."""
    return {
        "name": "Make WordPress Reader API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(aggregator: Annotated[PostAggregator, Depends(get_aggregator)]):
    """
    Health check.

    Reports degraded when no blog sources are configured, since every
    /posts call would then be empty.
    """
    source_count = len(aggregator.registry.list_sources())

    return HealthResponse(
        status="healthy" if source_count else "degraded",
        source_count=source_count,
        cache_ttl_seconds=aggregator.cache_ttl,
        max_posts=aggregator.max_posts,
        timestamp=datetime.now(UTC),
    )


@app.get("/posts", response_model=PostsResponse, tags=["Posts"])
async def get_posts(
    aggregator: Annotated[PostAggregator, Depends(get_aggregator)],
    limit: Annotated[int | None, Query(ge=1, le=20, description="Max posts to return")] = None,
):
    """
    Get the most recent posts across all blogs.

    Blogs that fail are left out; the response is empty, not an error,
    when every blog fails.
    """
    records = await aggregator.get_posts_list(max_posts=limit)
    posts = [format_post_for_api(record) for record in records]

    logger.info("Posts served", count=len(posts), limit=limit)

    return PostsResponse(posts=posts, count=len(posts))
