from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

# --- Configuration ---
API_BASE_URL = "https://hacker-news.firebaseio.com/v0"
HN_WEB_URL = "https://news.ycombinator.com"
HTTP_TIMEOUT = 10
TOP_STORIES_LIMIT = 10
MAX_COMMENT_DEPTH = 64
MAX_CONCURRENT_FETCHES = 8

CONFIG_PATH = os.path.expanduser("~/.config/hn/config.json")

REQUEST_HEADERS = {
    "User-Agent": "hn-tui/0.1 (+https://news.ycombinator.com/) python-requests",
    "Accept": "application/json",
}
RETRY_ATTEMPTS = 3
RETRY_BACKOFF = 0.3
RETRY_STATUS_CODES = [429, 500, 502, 503, 504]

DEFAULTS: Dict[str, Any] = {
    "api_base_url": API_BASE_URL,
    "top_stories": TOP_STORIES_LIMIT,
    "http_timeout": HTTP_TIMEOUT,
    "max_comment_depth": MAX_COMMENT_DEPTH,
    "max_concurrent_fetches": MAX_CONCURRENT_FETCHES,
    "theme": "dracula",
}

# --- Logging ---
logger = logging.getLogger("hn")


def setup_logging(debug: bool = False) -> Optional[str]:
    """Configure logging."""
    if not debug:
        logging.basicConfig(level=logging.CRITICAL, handlers=[logging.NullHandler()])
        return None

    ts = datetime.now().strftime("%Y%m%dT%H%M%S")
    pid = os.getpid()
    debug_path = f"/tmp/hn_debug_{ts}_{pid}.log"

    logging.basicConfig(
        level=logging.DEBUG,
        filename=debug_path,
        filemode="a",
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    logger.debug("Debug logging enabled to %s", debug_path)
    return debug_path


def ensure_config_file_exists() -> None:
    """Write the default config file if the user's config file is not found."""
    if not os.path.exists(CONFIG_PATH):
        logger.info("Config file not found at %s, creating default.", CONFIG_PATH)
        save_config(DEFAULTS)


def load_config() -> Dict[str, Any]:
    """Load the main configuration file, layered over DEFAULTS."""
    ensure_config_file_exists()
    config = dict(DEFAULTS)
    try:
        with open(CONFIG_PATH, "r") as f:
            user_config = json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        logger.error("Failed to load config from %s: %s", CONFIG_PATH, e)
        return config

    if not isinstance(user_config, dict):
        logger.error("Ignoring config at %s: expected a JSON object", CONFIG_PATH)
        return config

    config.update(user_config)
    logger.info("Loaded config from %s", CONFIG_PATH)
    return config


def save_config(config: Dict[str, Any]) -> None:
    """Save the main configuration file."""
    try:
        os.makedirs(os.path.dirname(CONFIG_PATH), exist_ok=True)
        with open(CONFIG_PATH, "w") as f:
            json.dump(config, f, indent=2)
        logger.info("Saved config to %s", CONFIG_PATH)
    except IOError as e:
        logger.error("Failed to save config to %s: %s", CONFIG_PATH, e)
