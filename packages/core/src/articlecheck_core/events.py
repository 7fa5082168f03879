"""Webhook payload parsing.

Only one event shape is actionable: an ``issue_comment`` with action
``created`` on an issue that is a pull request. Everything else becomes an
IgnoredEvent, which is expected and frequent rather than an error.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

from articlecheck_core.errors import MalformedPayloadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PullRequestCommentEvent:
    issue_number: int
    pull_request_url: str
    comment_body: str
    comment_created_at: datetime | None
    event_type: str | None = None


@dataclass(frozen=True)
class IgnoredEvent:
    reason: str
    event_type: str | None = None


WebhookEvent = Union[PullRequestCommentEvent, IgnoredEvent]


def _parse_timestamp(value) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        # GitHub sends "2024-01-01T12:00:00Z"; fromisoformat wants an explicit offset.
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable comment timestamp: %r", value)
        return None
    if parsed.tzinfo is None:
        # GitHub timestamps are UTC even when the offset is omitted.
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_event(raw_body: bytes, event_type: str | None = None) -> WebhookEvent:
    """Parse a raw webhook body into a WebhookEvent.

    Raises MalformedPayloadError when the body is not a JSON object. The
    event type header is carried along for logging but does not gate parsing:
    the payload shape decides.
    """
    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Webhook body is not valid JSON: %s", e)
        raise MalformedPayloadError("Malformed webhook payload")
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Malformed webhook payload")

    issue = payload.get("issue")
    comment = payload.get("comment")
    if not isinstance(issue, dict) or not isinstance(comment, dict):
        return IgnoredEvent("not an issue comment", event_type)
    if payload.get("action") != "created":
        return IgnoredEvent(f"comment action {payload.get('action')!r}", event_type)

    pull_request = issue.get("pull_request")
    if not isinstance(pull_request, dict):
        return IgnoredEvent("comment is not on a pull request", event_type)

    body = comment.get("body")
    if not body:
        return IgnoredEvent("empty comment", event_type)

    number = issue.get("number")
    if not isinstance(number, int):
        raise MalformedPayloadError("Malformed webhook payload")

    return PullRequestCommentEvent(
        issue_number=number,
        pull_request_url=pull_request.get("url") or "",
        comment_body=body,
        comment_created_at=_parse_timestamp(comment.get("created_at")),
        event_type=event_type,
    )
