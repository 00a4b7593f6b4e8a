"""Cache key derivation.

A cached response is stored as two records that share a TTL: the body
under ``wc_<url>_<version>`` and its content type under the same key with
a ``_ct`` suffix.
"""

from __future__ import annotations

from typing import NamedTuple

from webcache.models import CacheRule

KEY_PREFIX = "wc_"
CONTENT_TYPE_SUFFIX = "_ct"


class CacheKey(NamedTuple):
    """The pair of store keys for one cacheable response variant."""

    body: str
    content_type: str


def effective_url(path: str, query_string: str, rule: CacheRule) -> str:
    """Return the URL part that identifies the response under *rule*."""
    if rule.ignore_querystring or not query_string:
        return path
    return f"{path}?{query_string}"


def make_cache_key(path: str, query_string: str, rule: CacheRule, version: str = "") -> CacheKey:
    """Build the deterministic :class:`CacheKey` for a request.

    Requests that differ only in their query string share a key when the
    rule ignores query strings. Different paths or versions never share one.

    Args:
        path: The request path.
        query_string: The raw query string, without the leading ``?``.
        rule: The resolved rule that matched the request.
        version: The configured cache version tag.

    Example::

        >>> make_cache_key("/a", "x=1", rule, "2012").body
        'wc_/a?x=1_2012'
    """
    body = f"{KEY_PREFIX}{effective_url(path, query_string, rule)}_{version}"
    return CacheKey(body=body, content_type=body + CONTENT_TYPE_SUFFIX)
