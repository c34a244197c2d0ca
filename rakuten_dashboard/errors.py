"""Error types raised by the dashboard backend."""


class DashboardError(Exception):
    """Base class for dashboard errors."""


class BadRequestError(DashboardError, ValueError):
    """The caller sent parameters the dashboard cannot act on."""


class InvalidRangeError(BadRequestError):
    """A period could not be turned into a date range.

    Raised for a custom period missing one of its bounds, or for bounds
    that are not ISO calendar dates.
    """


class UpstreamFetchError(DashboardError):
    """Fetching order rows from the upstream store failed."""
