"""
Rank Node - Turns collected post lists into the final display list.

This node:
1. Flattens every PostCollection into PostRecords
2. Sorts them by publish date, newest first
3. Truncates to max_posts

Python's sort is stable (also with reverse=True), so posts with the same
date keep source order.

LangGraph Integration:
- Input: AggregatorState with collections, max_posts
- Output: {"posts": [...]}
"""

import html
from datetime import datetime, timezone

import structlog

from make_reader.graph.state import AggregatorState, PostCollection, PostRecord

logger = structlog.get_logger()

# Undated posts sort after everything else
UNKNOWN_DATE = datetime.min.replace(tzinfo=timezone.utc)


def parse_post_date(post: dict) -> datetime:
    """
    Extract the publish date from a WordPress.com post object.

    The API returns ISO 8601 strings ("2024-01-05T10:00:00+00:00") in
    `date`, with `modified` as a fallback. Naive values are taken as UTC.
    """
    for field in ["date", "modified"]:
        if date_str := post.get(field):
            try:
                parsed = datetime.fromisoformat(str(date_str))
            except ValueError:
                continue
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed

    logger.warning("Could not parse post date", post_id=post.get("ID"), title=post.get("title"))
    return UNKNOWN_DATE


def normalize_post(post: dict, source_name: str) -> PostRecord:
    """Build a PostRecord from a raw API post object."""
    return PostRecord(
        title=html.unescape(post.get("title") or ""),
        url=post.get("URL") or post.get("url"),
        published_at=parse_post_date(post),
        source_name=source_name,
        raw=post,
    )


def flatten_collections(collections: list[PostCollection]) -> list[PostRecord]:
    """All posts from all collections, in collection order."""
    return [
        normalize_post(post, collection["source_name"])
        for collection in collections
        for post in collection["posts"]
    ]


def rank_posts(records: list[PostRecord], max_posts: int) -> list[PostRecord]:
    """Newest first, at most max_posts."""
    ordered = sorted(records, key=lambda record: record["published_at"], reverse=True)
    return ordered[: max(max_posts, 0)]


async def rank(state: AggregatorState) -> dict:
    """
    LangGraph node: Merge, sort and truncate the collected posts.

    Returns:
        Partial state update with posts
    """
    collections = state.get("collections", [])
    max_posts = state.get("max_posts", 0)

    records = flatten_collections(collections)
    posts = rank_posts(records, max_posts)

    logger.info("Posts ranked", candidates=len(records), returned=len(posts), max_posts=max_posts)

    return {"posts": posts}
