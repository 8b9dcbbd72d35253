"""
LangGraph nodes for the post aggregator pipeline.

Each node is an async function that:
- Takes AggregatorState as input
- Returns a dict with partial state updates
- Handles errors gracefully (logs but doesn't crash)

Nodes:
- collect: Cache-or-fetch each blog's post list (built by create_collect_node)
- rank: Merge, sort and truncate posts

FetchClient is the HTTP layer used by collect.
"""

from make_reader.graph.nodes.collect import collect_posts, create_collect_node
from make_reader.graph.nodes.fetch import FetchClient
from make_reader.graph.nodes.rank import rank

__all__ = [
    "FetchClient",
    "collect_posts",
    "create_collect_node",
    "rank",
]
