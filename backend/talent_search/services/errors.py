class SearchError(Exception):
    """Base class for errors surfaced by the candidate search engine."""


class InvalidRequest(SearchError, ValueError):
    """The request was rejected before the store was queried."""


class StoreUnavailable(SearchError):
    """The candidate store failed or timed out. Never retried internally."""
