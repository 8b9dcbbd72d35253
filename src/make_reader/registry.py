"""
Source registry - which blogs to read and where their APIs live.

The registry holds an ordered name -> site ID mapping and turns it into
query endpoints. Two hooks replace the old global filters:

- source_filter(mapping) -> mapping: add, remove or replace blogs
- endpoint_filter(url, source) -> url: point a blog at another API host

Usage:
    registry = SourceRegistry(source_filter=lambda blogs: {"x": "123"})
    registry.endpoints()
    # [(Source(name='x', id='123'), 'https://public-api.wordpress.com/rest/v1.1/sites/123/posts/')]
"""

from collections.abc import Callable, Mapping

import structlog

from make_reader.config import Source, get_settings

logger = structlog.get_logger()

ENDPOINT_TEMPLATE = "https://{host}/rest/v1.1/sites/{id}/posts/"

SourceFilter = Callable[[dict[str, str]], object]
EndpointFilter = Callable[[str, Source], str]


class SourceRegistry:
    """Ordered registry of blog sources."""

    def __init__(
        self,
        blogs: Mapping[str, str | int] | None = None,
        source_filter: SourceFilter | None = None,
        endpoint_filter: EndpointFilter | None = None,
        api_host: str | None = None,
    ):
        """
        Args:
            blogs: Initial name -> site ID mapping (defaults to the Make blogs)
            source_filter: Receives a copy of the mapping, returns the one to use
            endpoint_filter: Receives the default URL and the Source, returns the URL to query
            api_host: Host for the default endpoint template
        """
        if blogs is None or api_host is None:
            settings = get_settings()
            if blogs is None:
                blogs = settings.default_blog_ids()
            if api_host is None:
                api_host = settings.api_host

        self._blogs: dict[str, str] = {name: str(blog_id) for name, blog_id in blogs.items()}
        self._source_filter = source_filter
        self._endpoint_filter = endpoint_filter
        self.api_host = api_host

    def register(self, name: str, blog_id: str | int) -> None:
        """Add a source, or replace the ID of an existing one."""
        self._blogs[name] = str(blog_id)

    def list_sources(self) -> list[Source]:
        """
        Return the sources to query, after the source filter has run.

        A filter that raises, or returns something other than a non-empty
        mapping, yields an empty list: the aggregator then has nothing to do.
        """
        blogs: object = dict(self._blogs)
        if self._source_filter is not None:
            try:
                blogs = self._source_filter(dict(self._blogs))
            except Exception:
                logger.exception("Source filter failed")
                return []

        if not isinstance(blogs, Mapping) or not blogs:
            logger.info("No blog sources configured", filtered=self._source_filter is not None)
            return []

        return [Source(name=str(name), id=str(blog_id)) for name, blog_id in blogs.items()]

    def endpoint_for(self, source: Source) -> str | None:
        """
        Build the query URL for one source.

        Site IDs are numeric; the absolute integer value is used, as
        WordPress.com does. Returns None for IDs that are not integers and
        for endpoint filters that return anything but a non-empty string.
        """
        try:
            site_id = abs(int(source.id))
        except ValueError:
            logger.warning("Skipping source with invalid site ID", source=source.name, site_id=source.id)
            return None

        url = ENDPOINT_TEMPLATE.format(host=self.api_host, id=site_id)
        if self._endpoint_filter is not None:
            url = self._endpoint_filter(url, source)

        if not isinstance(url, str) or not url:
            logger.warning("Skipping source with invalid endpoint", source=source.name, endpoint=repr(url))
            return None
        return url

    def endpoints(self) -> list[tuple[Source, str]]:
        """(source, endpoint) pairs in registry order."""
        pairs = []
        for source in self.list_sources():
            url = self.endpoint_for(source)
            if url:
                pairs.append((source, url))
        return pairs
