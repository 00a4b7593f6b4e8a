"""Exception hierarchy for webcache.

All exceptions inherit from :class:`WebCacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`webcache.exit_codes`.

Subclass hierarchy::

    WebCacheError (exit 1)
    +-- ConfigError   (exit 1, also a TypeError)
    +-- StoreError    (exit 3)

Only configuration errors ever escape the middleware, and only at
construction time. Store errors raised while a request is in flight are
logged and turned into cache misses.
"""

from webcache.exit_codes import EXIT_GENERIC_FAILURE, EXIT_STORE_ERROR


class WebCacheError(Exception):
    """Base exception for all webcache errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(WebCacheError, TypeError):
    """Raised for an unusable store, an empty rule list, or an invalid config file.

    Also a :class:`TypeError` so callers can treat a malformed middleware
    construction like any other bad-argument error.
    """

    exit_code = EXIT_GENERIC_FAILURE


class StoreError(WebCacheError):
    """Raised by the bundled stores when the backing library fails."""

    exit_code = EXIT_STORE_ERROR
