"""Tests for the request admission gates."""

import hashlib
import hmac
import json
from unittest.mock import MagicMock

import pytest

from articlecheck_core.ratelimit import RateLimitDecision, RateLimiter
from articlecheck_core.validator import Proceed, Reject, resolve_client_id, validate_request, verify_signature
from articlecheck_store.memory import MemoryKVStore

SECRET = "webhook-secret"
BODY = json.dumps({"action": "created"}).encode()


def _sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), msg=body, digestmod=hashlib.sha256).hexdigest()


def _config(**overrides):
    config = {
        "model": "anthropic",
        "github_token": "gh",
        "anthropic_api_key": "ant",
        "brave_search_api_key": "brave",
        "github_webhook_secret": SECRET,
        "client_ip_header": "x-forwarded-for",
    }
    config.update(overrides)
    return config


@pytest.fixture
def limiter():
    return RateLimiter(MemoryKVStore(), max_requests=100, window_size=3600)


class TestVerifySignature:
    def test_accepts_valid_signature(self):
        assert verify_signature(SECRET, BODY, _sign(BODY)) is True

    def test_rejects_wrong_secret(self):
        assert verify_signature(SECRET, BODY, _sign(BODY, "other")) is False

    def test_rejects_modified_body(self):
        assert verify_signature(SECRET, BODY + b" ", _sign(BODY)) is False

    def test_rejects_garbage(self):
        assert verify_signature(SECRET, BODY, "sha256=invalid") is False

    def test_rejects_other_algorithms(self):
        digest = hmac.new(SECRET.encode(), msg=BODY, digestmod=hashlib.sha1).hexdigest()
        assert verify_signature(SECRET, BODY, f"sha1={digest}") is False

    def test_rejects_missing_prefix(self):
        assert verify_signature(SECRET, BODY, _sign(BODY).removeprefix("sha256=")) is False


class TestResolveClientId:
    def test_uses_first_forwarded_hop(self):
        assert resolve_client_id({"x-forwarded-for": "9.9.9.9, 10.0.0.1"}, "X-Forwarded-For") == "9.9.9.9"

    def test_falls_back_to_unknown(self):
        assert resolve_client_id({}, "x-forwarded-for") == "unknown"

    def test_custom_header(self):
        assert resolve_client_id({"cf-connecting-ip": "1.1.1.1"}, "cf-connecting-ip") == "1.1.1.1"


class TestValidateRequest:
    def test_valid_request_proceeds(self, limiter):
        headers = {"X-Hub-Signature-256": _sign(BODY), "X-Forwarded-For": "1.2.3.4"}
        outcome = validate_request(headers, BODY, _config(), limiter)
        assert outcome == Proceed("1.2.3.4")

    def test_missing_config_rejected_with_500(self, limiter):
        outcome = validate_request({"x-hub-signature-256": _sign(BODY)}, BODY, _config(github_token=""), limiter)
        assert isinstance(outcome, Reject)
        assert outcome.status_code == 500
        assert outcome.reason == "Missing required environment variables"

    def test_missing_config_checked_before_rate_limit(self):
        limiter = MagicMock(spec=RateLimiter)
        validate_request({}, BODY, _config(brave_search_api_key=None), limiter)
        limiter.admit.assert_not_called()

    def test_rate_limited_rejected_with_retry_after(self):
        limiter = MagicMock(spec=RateLimiter)
        limiter.admit.return_value = RateLimitDecision(allowed=False, retry_after=3600)
        outcome = validate_request({"x-hub-signature-256": _sign(BODY)}, BODY, _config(), limiter)
        assert outcome == Reject(429, "Rate limit exceeded", {"Retry-After": "3600"})

    def test_unsigned_requests_are_still_rate_limited(self):
        limiter = MagicMock(spec=RateLimiter)
        limiter.admit.return_value = RateLimitDecision(allowed=True)
        validate_request({"x-forwarded-for": "6.6.6.6"}, BODY, _config(), limiter)
        limiter.admit.assert_called_once_with("6.6.6.6")

    def test_unknown_client_when_no_ip_header(self):
        limiter = MagicMock(spec=RateLimiter)
        limiter.admit.return_value = RateLimitDecision(allowed=True)
        validate_request({"x-hub-signature-256": _sign(BODY)}, BODY, _config(), limiter)
        limiter.admit.assert_called_once_with("unknown")

    def test_missing_signature_rejected_with_401(self, limiter):
        outcome = validate_request({}, BODY, _config(), limiter)
        assert outcome == Reject(401, "No signature")

    def test_invalid_signature_rejected_with_401(self, limiter):
        outcome = validate_request({"x-hub-signature-256": "sha256=invalid"}, BODY, _config(), limiter)
        assert outcome == Reject(401, "Invalid signature")

    def test_verification_gets_raw_body_and_secret(self, limiter, mocker):
        verify = mocker.patch("articlecheck_core.validator.verify_signature", return_value=False)
        outcome = validate_request({"x-hub-signature-256": "sha256=invalid"}, BODY, _config(), limiter)
        verify.assert_called_once_with(SECRET, BODY, "sha256=invalid")
        assert outcome.status_code == 401

    def test_signature_not_checked_when_rate_limited(self, mocker):
        verify = mocker.patch("articlecheck_core.validator.verify_signature")
        limiter = MagicMock(spec=RateLimiter)
        limiter.admit.return_value = RateLimitDecision(allowed=False, retry_after=60)
        validate_request({"x-hub-signature-256": _sign(BODY)}, BODY, _config(), limiter)
        verify.assert_not_called()
