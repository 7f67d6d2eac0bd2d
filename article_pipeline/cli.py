"""Command-line entry point for the article pipeline.

Usage:
    article-pipeline --help
    article-pipeline acquire --batch-size 5
    article-pipeline rewrite
    article-pipeline check-config
    article-pipeline serve --port 3001

Exit codes: 0 when the job completed or was skipped, 1 when it failed,
2 on configuration errors.
"""

import argparse
import json
import sys
from typing import List, Optional

import structlog
from pydantic import ValidationError

from article_pipeline.core.models import JobResult
from article_pipeline.core.pipeline import AcquisitionJob, RewriteJob
from article_pipeline.core.rewriter.backends import build_generation_backend
from article_pipeline.core.search import build_search_provider
from article_pipeline.shared.config import Settings, get_settings
from article_pipeline.shared.exceptions import ConfigurationError
from article_pipeline.shared.logging_config import configure_logging

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="article-pipeline", description="Article acquisition and rewrite jobs")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    acquire_parser = subparsers.add_parser("acquire", help="Scrape the oldest listing articles into the store")
    acquire_parser.add_argument("--batch-size", type=int, default=None, help="Number of articles to collect")
    acquire_parser.add_argument("--listing-url", default=None, help="Listing root URL to walk")

    subparsers.add_parser("rewrite", help="Rewrite the latest unprocessed article")
    subparsers.add_parser("check-config", help="Validate settings and backend credentials")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP trigger service")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")

    return parser


def _print_result(result: JobResult) -> int:
    print(json.dumps(result.to_dict(), indent=2))
    return EXIT_OK if result.succeeded else EXIT_FAILED


def check_config(settings: Settings) -> int:
    search_provider = build_search_provider(settings)
    backend = build_generation_backend(settings)
    print(json.dumps({
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "listing_root_url": settings.LISTING_ROOT_URL,
        "article_store": settings.ARTICLE_STORE_BASE_URL,
        "search_provider": search_provider.name,
        "generation_backend": backend.name,
        "model": backend.model,
    }, indent=2))
    return EXIT_OK


def serve(settings: Settings, host: Optional[str], port: Optional[int]) -> int:
    import uvicorn

    uvicorn.run(
        "article_pipeline.api.main:app",
        host=host or settings.API_HOST,
        port=port or settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILED

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return EXIT_CONFIG

    configure_logging(settings)

    try:
        if args.command == "acquire":
            job = AcquisitionJob(settings)
            return _print_result(job.run(listing_url=args.listing_url, batch_size=args.batch_size))

        elif args.command == "rewrite":
            job = RewriteJob(settings)
            return _print_result(job.run())

        elif args.command == "check-config":
            return check_config(settings)

        elif args.command == "serve":
            return serve(settings, args.host, args.port)

    except ConfigurationError as e:
        logger.error("Configuration error", **e.to_dict())
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return EXIT_CONFIG

    parser.print_help()
    return EXIT_FAILED


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
