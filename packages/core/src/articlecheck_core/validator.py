"""Admission gates run before any webhook payload is trusted.

Order matters: the cheap configuration check runs first, then rate limiting
(so unauthenticated floods are still counted), then signature verification
against the raw, unmodified body.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Union

from articlecheck_core.config import missing_secrets
from articlecheck_core.errors import ArticleCheckError, AuthenticationError, ConfigurationError, RateLimitError

if TYPE_CHECKING:
    from articlecheck_core.ratelimit import RateLimiter

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-hub-signature-256"
UNKNOWN_CLIENT = "unknown"


@dataclass(frozen=True)
class Proceed:
    client_id: str


@dataclass(frozen=True)
class Reject:
    status_code: int
    reason: str
    headers: dict[str, str] = field(default_factory=dict)


ValidationOutcome = Union[Proceed, Reject]


def verify_signature(secret: str, payload: bytes, signature: str) -> bool:
    """Check a GitHub ``sha256=<hex>`` signature over the raw request body."""
    algorithm, _, received = signature.partition("=")
    if algorithm != "sha256" or not received:
        return False
    expected = hmac.new(secret.encode(), msg=payload, digestmod=hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, received)


def resolve_client_id(headers: Mapping[str, str], header_name: str) -> str:
    """Return the client IP from the trusted proxy header, or "unknown"."""
    value = headers.get(header_name.lower())
    if not value:
        return UNKNOWN_CLIENT
    # X-Forwarded-For may carry a chain; the first hop is the client.
    return value.split(",")[0].strip() or UNKNOWN_CLIENT


def _check_config(config: dict) -> None:
    missing = missing_secrets(config)
    if missing:
        logger.error("Missing required environment variables: %s", ", ".join(missing))
        raise ConfigurationError("Missing required environment variables")


def _check_rate_limit(limiter: RateLimiter, client_id: str) -> None:
    decision = limiter.admit(client_id)
    if not decision.allowed:
        raise RateLimitError("Rate limit exceeded", retry_after=decision.retry_after)


def _check_signature(headers: Mapping[str, str], raw_body: bytes, secret: str, client_id: str) -> None:
    signature = headers.get(SIGNATURE_HEADER)
    if not signature:
        logger.warning("Rejected webhook from %s: no signature header", client_id)
        raise AuthenticationError("No signature")
    if not verify_signature(secret, raw_body, signature):
        logger.warning("Rejected webhook from %s: invalid signature", client_id)
        raise AuthenticationError("Invalid signature")


def validate_request(
    headers: Mapping[str, str],
    raw_body: bytes,
    config: dict,
    limiter: RateLimiter,
) -> ValidationOutcome:
    """Run every admission gate and return Proceed or the first Reject."""
    headers = {k.lower(): v for k, v in headers.items()}
    client_id = resolve_client_id(headers, config.get("client_ip_header", "x-forwarded-for"))
    try:
        _check_config(config)
        _check_rate_limit(limiter, client_id)
        _check_signature(headers, raw_body, config["github_webhook_secret"], client_id)
    except RateLimitError as e:
        return Reject(e.status_code, str(e), {"Retry-After": str(e.retry_after)})
    except ArticleCheckError as e:
        return Reject(e.status_code, str(e))
    return Proceed(client_id)
