"""Exception types raised across the news pipeline."""


class PipelineError(Exception):
    """Base error for pipeline stages."""


class SearchError(PipelineError):
    """A search provider query failed."""


class EnrichmentError(PipelineError):
    """A generation model call failed."""


class RateLimitedError(EnrichmentError):
    """The generation provider rejected the call with a rate limit."""


class ResponseParseError(EnrichmentError):
    """Model output could not be recovered into enough fields."""
