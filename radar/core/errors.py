"""Exception taxonomy for the ingestion pipeline.

Everything raised while processing one source is caught by the fetch cycle and
reported as a per-source error; none of these escape a cycle.
"""


class RadarError(Exception):
    """Base class for pipeline errors."""


class AccountRequiredError(RadarError):
    """Raised when a fetch cycle is invoked without an account."""


class FetchError(RadarError):
    """Network failure: timeout, DNS, connection reset or non-2xx status."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class FeedParseError(RadarError):
    """Upstream payload could not be parsed (malformed XML or JSON)."""


class ChannelResolutionError(RadarError):
    """A YouTube channel id could not be resolved by any strategy."""


class PersistenceError(RadarError):
    """The store rejected an insert or update."""

    def __init__(self, message: str, *, duplicate: bool = False):
        super().__init__(message)
        self.duplicate = duplicate
