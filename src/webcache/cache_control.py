"""Parsing of ``Cache-Control`` header values.

The middleware only ever asks one question of a ``Cache-Control`` header --
does it carry ``no-cache``? -- but the parser returns the full directive
mapping so callers can inspect ``max-age`` and friends as well.
"""

from __future__ import annotations

import re
from typing import Optional, Union

_INT_PREFIX = re.compile(r"^[+-]?\d+")

Directive = Union[int, bool]


def parse_cache_control(value: Optional[str]) -> dict[str, Directive]:
    """Parse a raw ``Cache-Control`` header into a directive mapping.

    Tokens are comma separated and take the form ``name`` or
    ``name=value``. Names are lower-cased. A value with a leading integer
    becomes that ``int`` (``max-age=60`` -> ``60``); flags and values that
    do not start with an integer become ``True``.

    Args:
        value: The header value, or ``None`` when the header is absent.

    Returns:
        A ``dict`` mapping directive names to ``int`` or ``True``.

    Example::

        >>> parse_cache_control("public, max-age=3600, no-cache")
        {'public': True, 'max-age': 3600, 'no-cache': True}
    """
    directives: dict[str, Directive] = {}
    if not value:
        return directives

    for token in value.split(","):
        name, sep, raw = token.partition("=")
        name = name.strip().lower()
        if not name:
            continue
        directives[name] = _parse_value(raw) if sep else True
    return directives


def _parse_value(raw: str) -> Directive:
    """Leading integer of *raw*, or ``True`` when there is none."""
    m = _INT_PREFIX.match(raw.strip().strip('"'))
    if m is None:
        return True
    return int(m.group(0))


def has_no_cache(value: Optional[str]) -> bool:
    """Return True if the header value carries the ``no-cache`` directive."""
    return bool(parse_cache_control(value).get("no-cache"))
