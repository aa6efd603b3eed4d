"""Error taxonomy for gator.

Every error raised on purpose by gator derives from GatorError, so the CLI
can report it with a message and a nonzero exit status.
"""


class GatorError(Exception):
    """Base class for all gator errors."""


class ArgumentError(GatorError):
    """Wrong number or form of command arguments."""


class NotFoundError(GatorError):
    """A user, feed or follow does not exist."""


class ConflictError(GatorError):
    """A unique key (user name, feed URL, follow, post URL) already exists."""


class ConfigError(GatorError):
    """The session file or settings could not be read or written."""


class FetchError(GatorError):
    """Fetching a feed failed.

    Attributes:
        url: URL of the feed that failed
    """

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class NetworkError(FetchError):
    """HTTP request failed, timed out or returned an error status."""


class ParseError(FetchError):
    """Response body is not a well-formed RSS/XML feed."""


__all__ = [
    "GatorError",
    "ArgumentError",
    "NotFoundError",
    "ConflictError",
    "ConfigError",
    "FetchError",
    "NetworkError",
    "ParseError",
]
