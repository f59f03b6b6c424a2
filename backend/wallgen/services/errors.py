"""Failure classification for upstream generation calls.

Every failure that leaves a job runner is a ``ClassifiedError``. The kind is
decided once, here, from whatever the SDK, httpx or the operation payload
produced; downstream code switches on ``ClassifiedError.kind`` and never
re-inspects raw messages.

Decision order (first match wins):
  1. permission denial            -> AUTH_INVALID
  2. RESOURCE_EXHAUSTED / 429     -> QUOTA_EXCEEDED
  3. 5xx / overloaded / UNAVAILABLE / INTERNAL -> RETRYABLE
  4. safety filter reason         -> CONTENT_FILTERED
  5. anything else                -> FATAL

500/INTERNAL is treated as transient for compatibility with the upstream's
habit of reporting capacity problems that way. It can hide a genuine
server-side bug behind 15 retries. The numeric markers are bare substrings,
so an unrelated number such as "5000px" also reads as RETRYABLE (and
"4290" as QUOTA_EXCEEDED); this is kept for compatibility.
"""

from __future__ import annotations

import enum
import json
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Sentinels the UI layer switches on
API_KEY_INVALID = "API_KEY_INVALID"
QUOTA_EXCEEDED = "QUOTA_EXCEEDED"

_AUTH_MARKERS = (
    "caller does not have permission",
    API_KEY_INVALID,
    "API key not valid",
)
_QUOTA_MARKERS = ("RESOURCE_EXHAUSTED", "429")
_TRANSIENT_MARKERS = (
    "503",
    "overloaded",
    "UNAVAILABLE",
    "500",
    "INTERNAL",
    "Internal error",
    "502",
    "504",
)
_FILTER_MARKERS = (
    "raiMediaFilteredReasons",
    "rai_media_filtered",
    "blockReason",
    "block_reason",
    "PROHIBITED_CONTENT",
    "SAFETY",
    "Generation blocked",
)


class FailureKind(str, enum.Enum):
    AUTH_INVALID = "AUTH_INVALID"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    RETRYABLE = "RETRYABLE"
    CONTENT_FILTERED = "CONTENT_FILTERED"
    FATAL = "FATAL"


class ClassifiedError(Exception):
    """A failure with a closed, already-decided kind."""

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        raw_cause: Any = None,
        *,
        exhausted: bool = False,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.raw_cause = raw_cause
        self.exhausted = exhausted

    @property
    def retryable(self) -> bool:
        return self.kind is FailureKind.RETRYABLE and not self.exhausted

    def user_message(self) -> str:
        """Message for the UI: the two sentinels, else the human text."""
        if self.kind is FailureKind.AUTH_INVALID:
            return API_KEY_INVALID
        if self.kind is FailureKind.QUOTA_EXCEEDED:
            return QUOTA_EXCEEDED
        return self.message

    def __repr__(self) -> str:
        return f"ClassifiedError({self.kind.value}, {self.message!r})"


def fatal(message: str, raw_cause: Any = None) -> ClassifiedError:
    return ClassifiedError(FailureKind.FATAL, message, raw_cause)


def content_filtered(reason: str, raw_cause: Any = None) -> ClassifiedError:
    return ClassifiedError(
        FailureKind.CONTENT_FILTERED, f"Generation blocked: {reason}", raw_cause
    )


def missing_credential() -> ClassifiedError:
    return ClassifiedError(FailureKind.AUTH_INVALID, "No API key configured")


def exhausted(error: ClassifiedError, attempts: int) -> ClassifiedError:
    """Demote a retryable failure whose attempt budget ran out."""
    return ClassifiedError(
        error.kind,
        f"Gave up after {attempts} attempts: {error.message}",
        error.raw_cause,
        exhausted=True,
    )


def describe_failure(raw: Any) -> str:
    """Best-effort human message for an arbitrary failure value."""
    if raw is None:
        return "Unknown error"
    if isinstance(raw, str):
        return raw

    parts: list[str] = []
    if isinstance(raw, BaseException):
        text = str(raw)
        if text:
            parts.append(text)
        for attr in ("code", "status"):
            value = getattr(raw, attr, None)
            if value is not None and str(value) not in text:
                parts.append(str(value))
        response = getattr(raw, "response", None)
        if isinstance(response, httpx.Response):
            parts.append(str(response.status_code))
            try:
                parts.append(response.text)
            except httpx.ResponseNotRead:
                pass
    elif isinstance(raw, dict):
        envelope = raw.get("error") if isinstance(raw.get("error"), dict) else raw
        for key in ("message", "code", "status"):
            value = envelope.get(key)
            if value is not None:
                parts.append(str(value))

    message = " ".join(p for p in parts if p)
    if not message:
        try:
            message = json.dumps(raw, default=str)
        except (TypeError, ValueError):
            message = repr(raw)
    return message


def _kind_for(message: str) -> FailureKind:
    if any(marker in message for marker in _AUTH_MARKERS):
        return FailureKind.AUTH_INVALID
    if any(marker in message for marker in _QUOTA_MARKERS):
        return FailureKind.QUOTA_EXCEEDED
    if any(marker in message for marker in _TRANSIENT_MARKERS):
        return FailureKind.RETRYABLE
    if any(marker in message for marker in _FILTER_MARKERS):
        return FailureKind.CONTENT_FILTERED
    return FailureKind.FATAL


def classify(raw: Any) -> ClassifiedError:
    """Map any failure value to a ``ClassifiedError``. Never raises."""
    if isinstance(raw, ClassifiedError):
        return raw
    try:
        message = describe_failure(raw)
    except Exception:  # noqa: BLE001 - a broken __str__ must not escape
        logger.debug("describe_failure failed for %r", type(raw), exc_info=True)
        message = f"Unprintable {type(raw).__name__}"
    return ClassifiedError(_kind_for(message), message, raw)
