from __future__ import annotations

from typing import Optional


class ResolutionError(Exception):
    """Base class for failures while turning item IDs into domain objects."""

    kind = "resolution_error"

    def __init__(self, message: str, item_id: Optional[int] = None):
        super().__init__(message)
        self.item_id = item_id


class NotFound(ResolutionError):
    """The remote ID does not resolve to an item."""

    kind = "not_found"


class NetworkError(ResolutionError):
    """Transport failure or timeout."""

    kind = "network_error"


class DecodeError(ResolutionError):
    """Malformed response, or remote data that is not a tree."""

    kind = "decode_error"


class DepthExceeded(ResolutionError):
    kind = "depth_exceeded"


class Superseded(ResolutionError):
    """A newer preview request made this resolution stale. Never shown to the user."""

    kind = "superseded"
