"""
Tests for the collect node.

Key testing strategies:
1. Use a mocked FetchClient to count network calls
2. Test cache hit/miss/expiry behaviour
3. Test that failures are skipped and never cached
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from make_reader.cache import InMemoryCache, cache_key
from make_reader.config import Source
from make_reader.graph.nodes.collect import collect_posts, collect_single_source, create_collect_node
from make_reader.graph.state import FetchFailure, PostCollection

CORE = Source(name="core", id="1")
DESIGN = Source(name="design", id="2")
CORE_URL = "https://api.example.com/rest/v1.1/sites/1/posts/"
DESIGN_URL = "https://api.example.com/rest/v1.1/sites/2/posts/"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def make_collection(source: Source, endpoint: str) -> PostCollection:
    return PostCollection(
        source_name=source.name,
        endpoint=endpoint,
        found=1,
        posts=[{"ID": 1, "title": f"{source.name} post", "date": "2024-01-01T00:00:00+00:00"}],
    )


def make_failure(source: Source, endpoint: str) -> FetchFailure:
    return FetchFailure(
        source_name=source.name,
        endpoint=endpoint,
        failure_type="transport",
        error_type="ConnectError",
        error_message="unreachable",
        timestamp=datetime.now(UTC),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryCache(clock=clock)


@pytest.fixture
def fetch_client():
    client = MagicMock()
    client.fetch = AsyncMock(side_effect=lambda endpoint, source_name: make_collection(
        Source(name=source_name, id="0"), endpoint
    ))
    return client


class TestCollectSingleSource:
    """Tests for cache-or-fetch on one source."""

    async def test_miss_fetches_and_caches(self, fetch_client, cache):
        """A cache miss should fetch and store the result."""
        result = await collect_single_source(CORE, CORE_URL, fetch_client, cache, cache_ttl=600)

        assert result["source_name"] == "core"
        fetch_client.fetch.assert_awaited_once_with(CORE_URL, source_name="core")
        assert cache.get(cache_key(CORE_URL)) == result

    async def test_hit_skips_network(self, fetch_client, cache):
        """A cache hit should not call the fetch client."""
        cached = make_collection(CORE, CORE_URL)
        cache.set(cache_key(CORE_URL), cached, ttl=600)

        result = await collect_single_source(CORE, CORE_URL, fetch_client, cache, cache_ttl=600)

        assert result == cached
        fetch_client.fetch.assert_not_awaited()

    async def test_repeat_within_ttl_fetches_once(self, fetch_client, cache, clock):
        """Two calls inside the TTL window make one request."""
        await collect_single_source(CORE, CORE_URL, fetch_client, cache, cache_ttl=600)
        clock.now += 300
        await collect_single_source(CORE, CORE_URL, fetch_client, cache, cache_ttl=600)

        assert fetch_client.fetch.await_count == 1

    async def test_refetch_after_expiry(self, fetch_client, cache, clock):
        """After the TTL the source is fetched again."""
        await collect_single_source(CORE, CORE_URL, fetch_client, cache, cache_ttl=600)
        clock.now += 601
        await collect_single_source(CORE, CORE_URL, fetch_client, cache, cache_ttl=600)

        assert fetch_client.fetch.await_count == 2

    async def test_failures_not_cached(self, cache):
        """A failed fetch should be retried on the next call."""
        client = MagicMock()
        client.fetch = AsyncMock(return_value=make_failure(CORE, CORE_URL))

        result = await collect_single_source(CORE, CORE_URL, client, cache, cache_ttl=600)
        await collect_single_source(CORE, CORE_URL, client, cache, cache_ttl=600)

        assert result["failure_type"] == "transport"
        assert cache.get(cache_key(CORE_URL)) is None
        assert client.fetch.await_count == 2


class TestCollectPosts:
    """Tests for the collect node across sources."""

    async def test_splits_collections_and_failures(self, cache):
        """Failed sources go to failures, the rest to collections."""

        async def fetch(endpoint, source_name):
            if source_name == "design":
                return make_failure(DESIGN, endpoint)
            return make_collection(CORE, endpoint)

        client = MagicMock()
        client.fetch = AsyncMock(side_effect=fetch)
        state = {"targets": [(CORE, CORE_URL), (DESIGN, DESIGN_URL)]}

        result = await collect_posts(state, client, cache, cache_ttl=600)

        assert [c["source_name"] for c in result["collections"]] == ["core"]
        assert [f["source_name"] for f in result["failures"]] == ["design"]

    async def test_keeps_source_order(self, fetch_client, cache):
        """Collections come back in target order regardless of completion order."""
        targets = [(Source(name=f"s{i}", id=str(i)), f"https://api.example.com/{i}/") for i in range(5)]

        result = await collect_posts({"targets": targets}, fetch_client, cache, cache_ttl=600)

        assert [c["source_name"] for c in result["collections"]] == ["s0", "s1", "s2", "s3", "s4"]

    async def test_no_targets(self, fetch_client, cache):
        """An empty target list makes no calls."""
        result = await collect_posts({"targets": []}, fetch_client, cache, cache_ttl=600)

        assert result == {"collections": [], "failures": []}
        fetch_client.fetch.assert_not_awaited()

    async def test_node_factory_binds_dependencies(self, fetch_client, cache):
        """The factory-built node should use the given client, cache and TTL."""
        node = create_collect_node(fetch_client, cache, 600)

        result = await node({"targets": [(CORE, CORE_URL)]})

        assert len(result["collections"]) == 1
        assert cache.get(cache_key(CORE_URL)) is not None

    async def test_shared_endpoint_keeps_source_names(self, fetch_client, cache):
        """Sources that share an endpoint are each credited with their own posts."""
        mirror = "https://mirror.example.com/"
        state = {"targets": [(CORE, mirror), (DESIGN, mirror)]}

        first = await collect_posts(state, fetch_client, cache, cache_ttl=600)
        second = await collect_posts(state, fetch_client, cache, cache_ttl=600)

        assert [c["source_name"] for c in first["collections"]] == ["core", "design"]
        assert [c["source_name"] for c in second["collections"]] == ["core", "design"]

    async def test_hit_does_not_rename_cached_entry(self, fetch_client, cache):
        """Relabelling a cache hit must not change what is stored."""
        cache.set(cache_key(CORE_URL), make_collection(CORE, CORE_URL), ttl=600)

        result = await collect_single_source(DESIGN, CORE_URL, fetch_client, cache, cache_ttl=600)

        assert result["source_name"] == "design"
        assert cache.get(cache_key(CORE_URL))["source_name"] == "core"
