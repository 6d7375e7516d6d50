"""
Error hierarchy for keyword clustering.

All errors raised on purpose by this package derive from
:class:`ClusteringError`. None of them are retried or swallowed inside the
package; callers decide whether to retry (e.g. on
:class:`EmbeddingRateLimitError`) or fail the run.
"""

from typing import Optional

__all__ = [
    "ClusteringError",
    "ValidationError",
    "ConfigurationError",
    "UpstreamError",
    "EmbeddingAuthenticationError",
    "EmbeddingRateLimitError",
    "EmbeddingTimeoutError",
]


class ClusteringError(Exception):
    """Base class for all clustering errors."""


class ValidationError(ClusteringError, ValueError):
    """Malformed parameters or input records, rejected before any computation."""


class ConfigurationError(ClusteringError):
    """The selected semantic provider cannot run, e.g. its credential is missing."""


class UpstreamError(ClusteringError):
    """
    The embedding service failed; the whole clustering run is aborted.

    Parameters
    ----------
    message : str
        Human readable description
    status_code : Optional[int]
        HTTP status returned by the service, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmbeddingAuthenticationError(UpstreamError):
    """The embedding service rejected the credential (401/403)."""


class EmbeddingRateLimitError(UpstreamError):
    """The embedding service refused the call for rate limit or quota reasons (429)."""


class EmbeddingTimeoutError(UpstreamError):
    """The embedding call did not complete within the configured timeout."""
