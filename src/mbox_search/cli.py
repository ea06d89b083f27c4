"""Command-line interface for mbox-search.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import structlog

from mbox_search import __version__
from mbox_search.config import Settings, get_settings
from mbox_search.exceptions import MboxSearchError
from mbox_search.service import MailboxService

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mbox-search",
        description="Semantic search over a local mbox archive",
    )
    parser.add_argument("query", help="Free-text query")
    parser.add_argument("mbox_path", type=Path, help="Path to the mbox file")
    parser.add_argument(
        "--top-k",
        type=int,
        default=None,
        help="Number of results (default: settings default_top_k)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Embedding worker count (default: settings worker_count)",
    )
    parser.add_argument(
        "--deterministic",
        action="store_true",
        help="Use non-semantic hash vectors instead of loading a model",
    )
    return parser


def configure_logging(settings: Settings) -> None:
    """Configure structlog to write level-filtered events to stderr."""

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _effective_settings(parsed: argparse.Namespace) -> Settings:
    settings = get_settings()
    update: dict[str, object] = {}
    if parsed.workers is not None:
        update["worker_count"] = parsed.workers
    if parsed.deterministic:
        update["embedding_backend"] = "deterministic"
    return settings.model_copy(update=update) if update else settings


def main(args: list[str] | None = None) -> int:
    """Main entry point for the mbox-search CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    parsed = _build_parser().parse_args(args)
    settings = _effective_settings(parsed)
    configure_logging(settings)

    logger.info("mbox_search_started", version=__version__, debug=settings.debug)

    try:
        service = MailboxService.from_path(parsed.mbox_path, settings=settings)
    except MboxSearchError as exc:
        logger.error("mailbox_initialization_failed", path=str(parsed.mbox_path), error=str(exc))
        return 1

    with service:
        service.index_emails()
        try:
            results = service.search_email(parsed.query, k=parsed.top_k)
        except MboxSearchError as exc:
            logger.error("search_failed", query=parsed.query, error=str(exc))
            return 1

        for score, message in results:
            print(f"Score : {score}")
            print(message)

    return 0


if __name__ == "__main__":
    sys.exit(main())
