"""
Fetch Client - Retrieves one blog's post list from the REST API.

This module:
1. Issues a GET against a blog's /posts/ endpoint using httpx (async HTTP)
2. Validates the transport (status 200, non-empty body)
3. Validates the payload (JSON object, no upstream error marker, posts found)
4. Returns a PostCollection, or a FetchFailure describing why not

Failures never raise: one broken blog must not take the whole list down.
There is no retry here; the next cache miss is the retry.
"""

import json
from datetime import datetime, timezone

import httpx
import structlog

from make_reader.config import get_settings
from make_reader.graph.state import FailureType, FetchFailure, FetchResult, PostCollection

logger = structlog.get_logger()


class FetchError(Exception):
    """Raised internally when a response can't be turned into a PostCollection."""

    def __init__(self, failure_type: FailureType, error_type: str, message: str):
        super().__init__(message)
        self.failure_type = failure_type
        self.error_type = error_type


def parse_found(value) -> int | None:
    """Coerce the API's `found` count, which may arrive as int or string."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_response(response: httpx.Response, source_name: str, endpoint: str) -> PostCollection:
    """
    Validate an HTTP response and build a PostCollection from it.

    Raises:
        FetchError: If the response is not a usable post list
    """
    if response.status_code != 200:
        raise FetchError(
            "protocol",
            "HTTPStatusError",
            f"HTTP {response.status_code}: {response.reason_phrase}",
        )

    if not response.content.strip():
        raise FetchError("protocol", "EmptyBody", "Response body is empty")

    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FetchError("protocol", "JSONDecodeError", str(e)) from e

    if not isinstance(payload, dict):
        raise FetchError("protocol", "UnexpectedPayload", f"Expected a JSON object, got {type(payload).__name__}")

    if not payload:
        raise FetchError("empty", "EmptyPayload", "Response contained no data")

    # WordPress.com signals problems (e.g. jetpack_error, unknown_blog) in-band
    if error := payload.get("error"):
        message = payload.get("message") or error
        raise FetchError("protocol", "UpstreamError", f"{error}: {message}")

    found = parse_found(payload.get("found"))
    if found == 0:
        raise FetchError("empty", "NoPostsFound", "Upstream reported zero posts")

    posts = payload.get("posts")
    if posts is None:
        posts = []
    if not isinstance(posts, list):
        raise FetchError("protocol", "UnexpectedPayload", "`posts` is not a list")

    posts = [post for post in posts if isinstance(post, dict)]
    if not posts:
        raise FetchError("empty", "NoPostsFound", "Response contained no posts")

    return PostCollection(
        source_name=source_name,
        endpoint=endpoint,
        found=found,
        posts=posts,
    )


class FetchClient:
    """
    Performs single GETs against blog endpoints.

    Pass a shared httpx.AsyncClient to pool connections across sources;
    otherwise a short-lived client is opened per fetch.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        user_agent: str | None = None,
    ):
        if timeout is None or user_agent is None:
            settings = get_settings()
            timeout = settings.fetch_timeout_seconds if timeout is None else timeout
            user_agent = settings.user_agent if user_agent is None else user_agent

        self._client = client
        self.timeout = timeout
        self.user_agent = user_agent

    async def fetch(self, endpoint: str, source_name: str = "") -> FetchResult:
        """
        Fetch and validate one blog's post list.

        Args:
            endpoint: Fully-formed /posts/ URL
            source_name: Blog name, carried into the result for provenance

        Returns:
            PostCollection on success, FetchFailure otherwise
        """
        if self._client is not None:
            return await self._fetch(self._client, endpoint, source_name)

        async with httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
        ) as client:
            return await self._fetch(client, endpoint, source_name)

    async def _fetch(self, client: httpx.AsyncClient, endpoint: str, source_name: str) -> FetchResult:
        log = logger.bind(source=source_name, endpoint=endpoint)

        try:
            log.debug("Fetching blog posts")
            response = await client.get(endpoint, timeout=self.timeout)
            collection = parse_response(response, source_name, endpoint)
            log.debug("Blog posts fetched", post_count=len(collection["posts"]))
            return collection

        except FetchError as e:
            log.warning("Blog returned no usable posts", error_type=e.error_type, error=str(e))
            return self._failure(source_name, endpoint, e.failure_type, e.error_type, str(e))

        except httpx.RequestError as e:
            log.warning("Request error fetching blog", error_type=type(e).__name__, error=str(e))
            return self._failure(source_name, endpoint, "transport", type(e).__name__, str(e))

        except Exception as e:
            log.exception("Unexpected error fetching blog")
            return self._failure(source_name, endpoint, "protocol", type(e).__name__, str(e))

    @staticmethod
    def _failure(
        source_name: str,
        endpoint: str,
        failure_type: FailureType,
        error_type: str,
        message: str,
    ) -> FetchFailure:
        return FetchFailure(
            source_name=source_name,
            endpoint=endpoint,
            failure_type=failure_type,
            error_type=error_type,
            error_message=message,
            timestamp=datetime.now(timezone.utc),
        )
