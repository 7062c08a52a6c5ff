#!/usr/bin/env python
"""Main entry point for the note graph MCP server."""
import argparse
import atexit
import logging
import os
import sys
from pathlib import Path

from notegraph_mcp.config import config
from notegraph_mcp.exceptions import NoteGraphError
from notegraph_mcp.observability import DEFAULT_METRICS_FILE, configure_logging, metrics
from notegraph_mcp.server.mcp_server import NoteGraphMcpServer
from notegraph_mcp.storage import create_store


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Note Graph MCP Server")
    parser.add_argument(
        "--store",
        help="Note store backend",
        choices=["sqlite", "markdown"],
        default=os.environ.get("NOTEGRAPH_STORE")
    )
    parser.add_argument(
        "--notes-dir",
        help="Directory of markdown note files (markdown store)",
        type=str,
        default=os.environ.get("NOTEGRAPH_NOTES_DIR")
    )
    parser.add_argument(
        "--database-path",
        help="SQLite database file path (sqlite store)",
        type=str,
        default=os.environ.get("NOTEGRAPH_DATABASE_PATH")
    )
    parser.add_argument(
        "--log-level",
        help="Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.environ.get("NOTEGRAPH_LOG_LEVEL", "INFO")
    )
    return parser.parse_args(argv)


def update_config(args):
    """Update the global config with command line arguments."""
    if args.store:
        config.store_backend = args.store
    if args.notes_dir:
        config.notes_dir = Path(args.notes_dir)
    if args.database_path:
        config.database_path = Path(args.database_path)


def _save_metrics_on_exit():
    """Save metrics to disk on server shutdown."""
    if metrics.save_metrics():
        logging.getLogger(__name__).info("Metrics saved to disk on shutdown")


def main(argv=None):
    """Run the note graph MCP server."""
    args = parse_args(argv)
    update_config(args)

    # Console + persistent file logging with rotation
    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    try:
        log_dir = configure_logging(level=log_level, console=True)
    except OSError as e:
        logging.basicConfig(level=log_level)
        logging.getLogger(__name__).warning(f"Failed to configure file logging: {e}")
        log_dir = None

    logger = logging.getLogger(__name__)
    if log_dir:
        logger.info(f"Persistent logging enabled: {log_dir}")

    metrics.set_metrics_file(DEFAULT_METRICS_FILE)
    atexit.register(_save_metrics_on_exit)

    try:
        store = create_store()
        logger.info(f"Using {config.store_backend} note store")
    except NoteGraphError as e:
        logger.error(f"Failed to open note store: {e}")
        sys.exit(1)

    try:
        logger.info("Starting note graph MCP server")
        server = NoteGraphMcpServer(store=store)
        server.run()
    except Exception as e:
        logger.error(f"Error running server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
