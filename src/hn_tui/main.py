#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import logging
import sys

from .app import HackerNewsApp
from .config import load_config, setup_logging
from .viewer import Viewer

logger = logging.getLogger("hn")


# --- Entrypoint ---
def main() -> None:
    parser = argparse.ArgumentParser(description="Hacker News TUI Client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--theme", type=str, help="Set a Textual theme for this run")
    parser.add_argument(
        "--limit", type=int, help="Number of top stories to list for this run"
    )
    args = parser.parse_args()

    debug_path = setup_logging(args.debug)
    if debug_path:
        print(f"Debug logging enabled: {debug_path}", file=sys.stderr)

    config = load_config()
    if args.limit is not None:
        if args.limit < 1:
            parser.error("--limit must be at least 1")
        config["top_stories"] = args.limit
    theme_name = args.theme or config.get("theme")
    logger.info("Using theme: %s", theme_name)

    try:
        viewer = Viewer.from_config(config)
        app = HackerNewsApp(viewer, theme=theme_name)
        app.run()
    except Exception as e:
        logger.exception("Application crashed: %s", e)
        print(f"Application crashed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
