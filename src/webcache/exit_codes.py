"""Numeric process exit codes for the ``webcache`` command line tool.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~webcache.exceptions.WebCacheError` subclass.

Example::

    $ webcache key rules.yaml /nothing/matches
    $ echo $?
    4   # EXIT_NO_MATCH -- no rule applies to the URL
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or the configuration is invalid."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_STORE_ERROR = 3
"""The cache store backend failed."""

EXIT_NO_MATCH = 4
"""No cache rule matches the given URL."""
