"""
Cache key helpers.

Keys are plain colon-joined strings so they stay readable in logs, in the
X-Cache-Key header and in Redis. Identity tokens are hashed before they are
folded into a key so raw credentials never appear in any of those places.
"""

import hashlib
from typing import Any

from gallery_cache.core.config.constants import ANONYMOUS_PRINCIPAL, KEY_SEPARATOR


def build_key(prefix: str, *parts: Any) -> str:
    """
    Compose ``prefix:part1:part2...``.

    Example:
        >>> build_key("artworks", 1, 12, "all")
        'artworks:1:12:all'
    """
    return KEY_SEPARATOR.join([prefix, *(str(part) for part in parts)])


def principal_token(identity: str | None) -> str:
    """
    Stable, non-reversible token for a principal identity.

    Returns ``anonymous`` when there is no identity.
    """
    if not identity:
        return ANONYMOUS_PRINCIPAL
    digest = hashlib.sha256(identity.encode("utf-8")).hexdigest()[:16]
    return f"u-{digest}"
