"""Selection of the cache rule that applies to a request.

Rules are scanned in declaration order and the **last** matching rule wins,
so a specific rule declared after a general one overrides it::

    rules = [
        CacheRule(match=r"^/article/", max_age=60_000),
        CacheRule(match=r"^/article/archive/", max_age=86_400_000),
    ]

``GET /article/archive/2012`` gets the one-day rule, ``GET /article/1`` the
one-minute rule.
"""

from __future__ import annotations

from typing import Iterable, Optional

from webcache.models import CacheOptions, CacheRule

CACHEABLE_METHOD = "GET"


class RuleMatcher:
    """An ordered, immutable list of resolved :class:`CacheRule` objects.

    Args:
        rules: Rules in declaration order.
        options: Defaults for rule fields left unset. When ``None`` the
            :class:`CacheOptions` defaults are used.
    """

    def __init__(self, rules: Iterable[CacheRule], options: Optional[CacheOptions] = None) -> None:
        options = options or CacheOptions()
        self._rules: tuple[CacheRule, ...] = tuple(r.with_defaults(options) for r in rules)

    @property
    def rules(self) -> tuple[CacheRule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def match(self, method: str, path: str) -> Optional[CacheRule]:
        """Return the last rule whose pattern matches *path*, or ``None``.

        Only ``GET`` requests are considered; every other method returns
        ``None`` without evaluating any rule.

        Args:
            method: The request method.
            path: The request path, without the query string.
        """
        if method.upper() != CACHEABLE_METHOD:
            return None

        matched: Optional[CacheRule] = None
        for rule in self._rules:
            if rule.matches(path):
                matched = rule
        return matched
