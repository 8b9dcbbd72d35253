"""
Main entry point for the Make WordPress Reader.

1. API Server Mode (default):
   python -m make_reader.main
   python -m make_reader.main serve

2. One-shot Mode:
   python -m make_reader.main run
   python -m make_reader.main run --max-posts 5

How This Works:
- The CLI uses argparse for argument parsing
- Each command maps to an async function run with asyncio.run()
- structlog provides structured logging throughout
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import asyncio
import logging
import sys

import structlog
import uvicorn

from make_reader.config import get_settings

# ========================================
# LOGGING CONFIGURATION
# ========================================

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


# ========================================
# COMMAND FUNCTIONS
# ========================================


async def run_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """
    Start the FastAPI server (endpoints live in make_reader/api.py).

    Args:
        host: Host to bind to
        port: Port to listen on
        reload: Enable auto-reload on code changes (development only)
    """
    logger.info("Starting API server", host=host, port=port, reload=reload)

    config = uvicorn.Config(
        "make_reader.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


async def print_posts(max_posts: int | None = None):
    """Aggregate once and print the result."""
    from make_reader.graph import PostAggregator

    aggregator = PostAggregator(max_posts=max_posts)
    report = await aggregator.aggregate()

    posts = report["posts"]
    failures = report["failures"]

    print("\n" + "=" * 60)
    print("Latest Make WordPress Posts")
    print("=" * 60)

    if not posts:
        print("No posts available.")

    for post in posts:
        title = post["title"] or "(untitled)"
        if len(title) > 60:
            title = title[:57] + "..."
        print(f"  {post['published_at']:%Y-%m-%d %H:%M}  [{post['source_name']}] {title}")
        if post["url"]:
            print(f"      {post['url']}")

    if failures:
        print(f"\nSkipped {len(failures)} blog(s):")
        for failure in failures:
            print(f"  - {failure['source_name']}: {failure['error_type']} ({failure['failure_type']})")


# ========================================
# CLI ENTRY POINT
# ========================================


def main():
    """Parse arguments and dispatch to serve or run."""
    parser = argparse.ArgumentParser(
        description="Make WordPress Reader - Most recent posts from the Make blogs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m make_reader.main serve              # Start API server
  python -m make_reader.main serve --port 8080  # Custom port
  python -m make_reader.main run                # Print the latest posts
  python -m make_reader.main run --max-posts 10 # More posts
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")

    run_parser = subparsers.add_parser("run", help="Aggregate once and print the posts")
    run_parser.add_argument(
        "--max-posts",
        type=int,
        default=None,
        help="Number of posts to show (default: MAX_POSTS setting)",
    )

    args = parser.parse_args()

    if args.command is None:
        args.command = "serve"
        args.host = "0.0.0.0"
        args.port = 8000
        args.reload = False

    # Validate settings early
    try:
        settings = get_settings()
    except Exception as e:
        print(f"\nConfiguration Error: {e}")
        print("\nCheck your .env file and environment variables.")
        sys.exit(1)

    logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")
    logger.debug("Settings loaded", log_level=settings.log_level, api_host=settings.api_host)

    if args.command == "serve":
        asyncio.run(run_server(host=args.host, port=args.port, reload=args.reload))
    elif args.command == "run":
        asyncio.run(print_posts(max_posts=args.max_posts))


if __name__ == "__main__":
    main()
