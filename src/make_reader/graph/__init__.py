"""
LangGraph pipeline for the post aggregator.

This package contains:
- state.py: State schemas (AggregatorState, PostCollection, PostRecord)
- nodes/: Pipeline nodes and the fetch client
- orchestrator.py: PostAggregator, which wires and runs the graph

Usage:
    from make_reader.graph import PostAggregator

    posts = await PostAggregator().get_posts_list()
"""

from make_reader.graph.orchestrator import PostAggregator, get_aggregator
from make_reader.graph.state import (
    AggregationReport,
    AggregatorState,
    FetchFailure,
    PostCollection,
    PostRecord,
)

__all__ = [
    # Orchestration
    "PostAggregator",
    "get_aggregator",
    # State types
    "AggregationReport",
    "AggregatorState",
    "FetchFailure",
    "PostCollection",
    "PostRecord",
]
