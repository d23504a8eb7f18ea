from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import (
    API_BASE_URL,
    HTTP_TIMEOUT,
    REQUEST_HEADERS,
    RETRY_ATTEMPTS,
    RETRY_BACKOFF,
    RETRY_STATUS_CODES,
)
from ..datamodels import Comment, Item, StoryItem
from ..errors import DecodeError, NetworkError, NotFound
from .base import Source

logger = logging.getLogger("hn")


class HackerNewsSource(Source):
    """Items and top stories from the Hacker News Firebase API."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        base_url = (
            os.getenv("HN_API_BASE_URL")
            or self.config.get("api_base_url")
            or API_BASE_URL
        )
        self.base_url = base_url.rstrip("/")
        self.timeout = self.config.get("http_timeout", HTTP_TIMEOUT)
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update(REQUEST_HEADERS)
        retries = Retry(
            total=RETRY_ATTEMPTS,
            backoff_factor=RETRY_BACKOFF,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retries)
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        return s

    def _get_json(self, path: str, item_id: Optional[int] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("Fetching %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Request failed for %s: %s", url, e)
            raise NetworkError(f"request failed: {type(e).__name__}", item_id) from e

        if resp.status_code == 404:
            raise NotFound(f"{path} not found", item_id)
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            logger.warning("HTTP %s for %s", resp.status_code, url)
            raise NetworkError(f"HTTP {resp.status_code}", item_id) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(f"invalid JSON from {path}", item_id) from e
        logger.debug("Fetched %s OK", url)
        return data

    def fetch_item(self, item_id: int) -> Item:
        data = self._get_json(f"/item/{int(item_id)}.json", item_id)
        if data is None:
            raise NotFound(f"item {item_id} does not exist", item_id)
        item = decode_item(data, item_id)
        if item.id != item_id:
            raise DecodeError(f"asked for item {item_id}, got item {item.id}", item_id)
        return item

    def fetch_top_story_ids(self, limit: int) -> List[int]:
        data = self._get_json("/topstories.json")
        if not isinstance(data, list):
            raise DecodeError(f"topstories returned non-list payload: {type(data).__name__}")
        ids = data[: max(0, limit)]
        if not all(_is_int(i) for i in ids):
            raise DecodeError("topstories contained a non-integer id")
        return ids

    def close(self) -> None:
        self.session.close()


def decode_item(data: Any, item_id: Optional[int] = None) -> Item:
    """Build a StoryItem or Comment from an item payload, keyed on its ``type``."""
    if not isinstance(data, dict):
        raise DecodeError(f"item payload is {type(data).__name__}, not an object", item_id)
    try:
        kind = data.get("type") or "story"
        common = {
            "id": _int_field(data, "id", required=True),
            "time": _timestamp(data.get("time")),
            "by": _str_field(data, "by") or "",
            "kids": tuple(_kids(data.get("kids"))),
            "kind": kind,
        }
        if kind == "comment":
            return Comment(text=_str_field(data, "text") or "", **common)
        title = _str_field(data, "title")
        if title is None:
            raise ValueError("missing title")
        return StoryItem(
            title=title,
            url=_str_field(data, "url"),
            text=_str_field(data, "text"),
            score=_int_field(data, "score"),
            descendants=_int_field(data, "descendants"),
            **common,
        )
    except (TypeError, ValueError, OverflowError) as e:
        raise DecodeError(f"malformed item {item_id}: {e}", item_id) from e


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _int_field(data: Dict[str, Any], key: str, required: bool = False) -> int:
    value = data.get(key)
    if value is None:
        if required:
            raise ValueError(f"missing {key}")
        return 0
    if not _is_int(value):
        raise TypeError(f"{key} is not an integer")
    return value


def _str_field(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{key} is not a string")
    return value


def _kids(value: Any) -> List[int]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(_is_int(k) for k in value):
        raise TypeError("kids is not a list of integers")
    return value


def _timestamp(value: Any) -> datetime:
    if not _is_int(value) and not isinstance(value, float):
        raise TypeError("time is not a Unix timestamp")
    return datetime.fromtimestamp(value, tz=timezone.utc)
