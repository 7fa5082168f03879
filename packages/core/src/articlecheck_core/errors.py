"""Error taxonomy for the webhook pipeline.

Each error carries the HTTP status it maps to so the validator and the
pipeline boundary can turn any of them into a response without a lookup
table of their own.
"""

from __future__ import annotations


class ArticleCheckError(Exception):
    status_code: int = 500


class ConfigurationError(ArticleCheckError):
    """Required secrets are missing. The operator must fix the deployment."""

    status_code = 500


class AuthenticationError(ArticleCheckError):
    """Webhook signature missing or invalid."""

    status_code = 401


class RateLimitError(ArticleCheckError):
    status_code = 429

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamTimeoutError(ArticleCheckError):
    """A remote collaborator did not answer within its deadline."""

    status_code = 500


class UpstreamFailure(ArticleCheckError):
    """A remote collaborator returned a non-success status or raised."""

    status_code = 500


class MalformedPayloadError(ArticleCheckError):
    """The webhook body is not JSON or lacks the expected shape.

    The message is generic; parse details stay in the logs.
    """

    status_code = 500
