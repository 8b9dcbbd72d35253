"""
Collect Node - Gets each blog's post list from the cache or the network.

This node:
1. Derives a cache key from each source's endpoint
2. Uses the cached PostCollection when present
3. Otherwise fetches the blog, caching only successful results
4. Runs all sources concurrently using asyncio.gather()
5. Handles failures gracefully (logs them, doesn't fail the pipeline)

LangGraph Integration:
- Input: AggregatorState with targets
- Output: {"collections": [...], "failures": [...]}
- Collections keep source order, which the rank node relies on for ties
"""

import asyncio

import structlog

from make_reader.cache import CacheStore, cache_key
from make_reader.config import Source
from make_reader.graph.nodes.fetch import FetchClient
from make_reader.graph.state import AggregatorState, FetchResult, is_failure

logger = structlog.get_logger()


async def collect_single_source(
    source: Source,
    endpoint: str,
    fetch_client: FetchClient,
    cache: CacheStore,
    cache_ttl: float,
) -> FetchResult:
    """
    Return one source's post list, going to the network only on a cache miss.

    Args:
        source: The blog being read
        endpoint: Its query URL
        fetch_client: Client used on a cache miss
        cache: Shared cache store
        cache_ttl: Lifetime in seconds for a freshly fetched list

    Returns:
        PostCollection or FetchFailure (failures are never cached)
    """
    key = cache_key(endpoint)
    log = logger.bind(source=source.name, cache_key=key)

    cached = cache.get(key)
    if cached is not None:
        log.debug("Cache hit")
        # Another source may have cached this endpoint; credit the posts to this one
        return {**cached, "source_name": source.name}

    log.debug("Cache miss")
    result = await fetch_client.fetch(endpoint, source_name=source.name)

    if not is_failure(result):
        cache.set(key, result, cache_ttl)
        log.debug("Cached post list", ttl=cache_ttl)

    return result


async def collect_posts(
    state: AggregatorState,
    fetch_client: FetchClient,
    cache: CacheStore,
    cache_ttl: float,
) -> dict:
    """
    LangGraph node: Collect post lists from every target concurrently.

    Returns:
        Partial state update with collections and failures
    """
    targets = state.get("targets", [])

    tasks = [
        collect_single_source(source, endpoint, fetch_client, cache, cache_ttl)
        for source, endpoint in targets
    ]
    results = await asyncio.gather(*tasks)

    collections = []
    failures = []
    for result in results:
        if is_failure(result):
            failures.append(result)
        else:
            collections.append(result)

    logger.info(
        "Blog collection complete",
        source_count=len(targets),
        collected=len(collections),
        failed=len(failures),
    )

    return {
        "collections": collections,
        "failures": failures,
    }


def create_collect_node(fetch_client: FetchClient, cache: CacheStore, cache_ttl: float):
    """
    Factory for a collect node bound to a client, cache and TTL.

    Usage:
        builder.add_node("collect", create_collect_node(client, cache, 600))
    """

    async def node(state: AggregatorState) -> dict:
        return await collect_posts(state, fetch_client, cache, cache_ttl)

    return node
