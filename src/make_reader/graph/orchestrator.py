"""
LangGraph Orchestrator - Wires the collect and rank nodes into a pipeline.

Pipeline Flow:
    START
      ↓
    Collect (cache or fetch, one task per blog)
      ↓
    Rank (flatten, sort newest first, truncate)
      ↓
    END

PostAggregator owns its collaborators (registry, cache, fetch client)
instead of reaching for globals, so tests and callers can swap any of
them. An empty source list short-circuits before the graph runs, so no
request is made.

Usage:
    from make_reader.graph.orchestrator import PostAggregator

    aggregator = PostAggregator()
    posts = await aggregator.get_posts_list()
    for post in posts:
        print(post["published_at"], post["title"])
"""

import structlog
from langgraph.graph import END, START, StateGraph

from make_reader.cache import CacheStore, InMemoryCache
from make_reader.config import get_settings
from make_reader.graph.nodes import FetchClient, create_collect_node, rank
from make_reader.graph.state import AggregationReport, AggregatorState, PostRecord
from make_reader.registry import SourceRegistry

logger = structlog.get_logger()


class PostAggregator:
    """Fetches, caches, merges and truncates posts from all registered blogs."""

    def __init__(
        self,
        registry: SourceRegistry | None = None,
        cache: CacheStore | None = None,
        fetch_client: FetchClient | None = None,
        cache_ttl: float | None = None,
        max_posts: int | None = None,
    ):
        """
        Args:
            registry: Source list and endpoint builder (defaults to the Make blogs)
            cache: Cache store (defaults to a fresh InMemoryCache)
            fetch_client: HTTP client wrapper (defaults to settings-driven FetchClient)
            cache_ttl: Seconds to cache each blog's post list (default from settings)
            max_posts: Maximum posts returned (default from settings)
        """
        if cache_ttl is None or max_posts is None:
            settings = get_settings()
            cache_ttl = settings.cache_ttl_seconds if cache_ttl is None else cache_ttl
            max_posts = settings.max_posts if max_posts is None else max_posts

        self.registry = registry if registry is not None else SourceRegistry()
        self.cache = cache if cache is not None else InMemoryCache()
        self.fetch_client = fetch_client if fetch_client is not None else FetchClient()
        self.cache_ttl = cache_ttl
        self.max_posts = max_posts
        self._graph = None

    def create_graph(self):
        """
        Build and compile the aggregator graph.

        The collect node is bound to this aggregator's client, cache and
        TTL; rank is a plain node.
        """
        builder = StateGraph(AggregatorState)

        builder.add_node("collect", create_collect_node(self.fetch_client, self.cache, self.cache_ttl))
        builder.add_node("rank", rank)

        builder.add_edge(START, "collect")
        builder.add_edge("collect", "rank")
        builder.add_edge("rank", END)

        return builder.compile()

    @property
    def graph(self):
        """The compiled graph, built on first use."""
        if self._graph is None:
            self._graph = self.create_graph()
        return self._graph

    async def aggregate(self, max_posts: int | None = None) -> AggregationReport:
        """
        Run the pipeline and return posts together with per-source failures.

        Args:
            max_posts: Override the configured maximum for this call
        """
        limit = self.max_posts if max_posts is None else max_posts
        targets = self.registry.endpoints()

        if not targets:
            logger.info("No sources to aggregate")
            return AggregationReport(posts=[], failures=[])

        logger.info("Starting aggregation", source_count=len(targets), max_posts=limit)

        initial_state: AggregatorState = {
            "targets": targets,
            "max_posts": limit,
        }
        final_state = await self.graph.ainvoke(initial_state)

        report = AggregationReport(
            posts=final_state.get("posts", []),
            failures=final_state.get("failures", []),
        )

        logger.info(
            "Aggregation complete",
            post_count=len(report["posts"]),
            failures=len(report["failures"]),
        )
        return report

    async def get_posts_list(self, max_posts: int | None = None) -> list[PostRecord]:
        """
        The most recent posts across all blogs, newest first.

        Never raises for a failing blog; the worst case is an empty list.
        """
        report = await self.aggregate(max_posts=max_posts)
        return report["posts"]


# ========================================
# CONVENIENCE API
# One process-wide aggregator for the API server and CLI
# ========================================

_cached_aggregator: PostAggregator | None = None


def get_aggregator() -> PostAggregator:
    """
    Get or create the shared aggregator.

    Sharing it means sharing its cache, which is the point: page
    renders within the TTL reuse each blog's last response.
    """
    global _cached_aggregator

    if _cached_aggregator is None:
        _cached_aggregator = PostAggregator()

    return _cached_aggregator
