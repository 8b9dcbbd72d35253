"""
LangGraph state schemas for the post aggregator.

This module defines:
1. PostCollection - One blog's parsed API response
2. FetchFailure - A blog that contributed nothing (non-fatal)
3. PostRecord - A single normalized post, ready for display
4. AggregatorState - The graph state passed between nodes

Source itself lives in make_reader.config next to the default blog list.
"""

import operator
from datetime import datetime
from typing import Annotated, Literal, TypedDict

from make_reader.config import Source


class PostCollection(TypedDict):
    """
    A blog's post list as returned by the REST API.

    This is the value stored in the cache, so it must stay plain data
    (no datetimes, no models) to survive any cache backend.
    """

    source_name: str
    endpoint: str
    found: int | None  # Upstream total, if reported
    posts: list[dict]  # Raw post objects from the API


FailureType = Literal["transport", "protocol", "empty"]


class FetchFailure(TypedDict):
    """
    A source that could not contribute posts.

    transport: DNS/connection/timeout errors
    protocol: bad status, empty or malformed body, upstream error marker
    empty: upstream reported zero posts
    """

    source_name: str
    endpoint: str
    failure_type: FailureType
    error_type: str  # Exception class name or reason code
    error_message: str
    timestamp: datetime


FetchResult = PostCollection | FetchFailure


def is_failure(result: FetchResult) -> bool:
    """Tell a FetchFailure apart from a PostCollection."""
    return "failure_type" in result


class PostRecord(TypedDict):
    """A single post, normalized for the caller that renders it."""

    title: str
    url: str | None
    published_at: datetime
    source_name: str
    raw: dict  # The untouched API object


class AggregationReport(TypedDict):
    """Posts plus the per-source failures behind a run."""

    posts: list[PostRecord]
    failures: list[FetchFailure]


class AggregatorState(TypedDict, total=False):
    """
    Main state for the aggregator graph.

    START -> collect -> rank -> END

    `collections` and `failures` use operator.add so additional
    collector nodes can be wired in parallel later without clobbering
    each other.
    """

    # === Input ===
    targets: list[tuple[Source, str]]  # (source, endpoint) in registry order
    max_posts: int

    # === Collection ===
    collections: Annotated[list[PostCollection], operator.add]
    failures: Annotated[list[FetchFailure], operator.add]

    # === Output ===
    posts: list[PostRecord]
