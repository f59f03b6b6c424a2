"""Tests for failure classification."""

import httpx
import pytest

from wallgen.services.errors import (
    API_KEY_INVALID,
    QUOTA_EXCEEDED,
    ClassifiedError,
    FailureKind,
    classify,
    describe_failure,
    exhausted,
)


class TestClassify:
    def test_permission_denial_is_auth(self):
        err = classify(Exception("403 PERMISSION_DENIED: The caller does not have permission"))
        assert err.kind is FailureKind.AUTH_INVALID

    def test_permission_denial_wins_over_other_markers(self):
        err = classify("caller does not have permission; 503 UNAVAILABLE; 429; overloaded")
        assert err.kind is FailureKind.AUTH_INVALID

    def test_403_overloaded_is_retryable(self):
        err = classify(Exception("403 Forbidden: model is overloaded"))
        assert err.kind is FailureKind.RETRYABLE

    def test_bare_403_is_not_auth(self):
        assert classify("403 Forbidden").kind is FailureKind.FATAL

    @pytest.mark.parametrize("message", ["429 Too Many Requests", "RESOURCE_EXHAUSTED"])
    def test_quota(self, message):
        assert classify(message).kind is FailureKind.QUOTA_EXCEEDED

    @pytest.mark.parametrize(
        "message",
        [
            "500 Internal Server Error",
            "502 Bad Gateway",
            "503 Service Unavailable",
            "504 Gateway Timeout",
            "The model is overloaded. Please try again later.",
            "UNAVAILABLE",
            "INTERNAL",
        ],
    )
    def test_transient(self, message):
        assert classify(message).kind is FailureKind.RETRYABLE

    def test_quota_wins_over_transient(self):
        assert classify("429 RESOURCE_EXHAUSTED while UNAVAILABLE").kind is FailureKind.QUOTA_EXCEEDED

    def test_safety_reason_is_content_filtered(self):
        err = classify({"raiMediaFilteredReasons": ["violence"]})
        assert err.kind is FailureKind.CONTENT_FILTERED

    def test_unknown_is_fatal(self):
        err = classify(ValueError("bad aspect ratio"))
        assert err.kind is FailureKind.FATAL
        assert err.message == "bad aspect ratio"

    def test_numeric_markers_match_as_substrings(self):
        # Compatibility: status markers are matched anywhere in the text.
        assert classify("image exceeds 5000px").kind is FailureKind.RETRYABLE
        assert classify("request id 4290 rejected").kind is FailureKind.QUOTA_EXCEEDED

    def test_structured_error_body(self):
        err = classify({"error": {"code": 503, "message": "Backend busy", "status": "UNAVAILABLE"}})
        assert err.kind is FailureKind.RETRYABLE
        assert "Backend busy" in err.message

    def test_operation_error_payload(self):
        err = classify({"code": 13, "message": "Internal error encountered."})
        assert err.kind is FailureKind.RETRYABLE

    def test_httpx_status_error_uses_status_code(self):
        request = httpx.Request("GET", "https://upstream.test/v1beta/operations/x")
        response = httpx.Response(429, request=request, text="slow down")
        exc = httpx.HTTPStatusError("rate limited", request=request, response=response)
        assert classify(exc).kind is FailureKind.QUOTA_EXCEEDED

    def test_already_classified_passes_through(self):
        original = ClassifiedError(FailureKind.CONTENT_FILTERED, "blocked")
        assert classify(original) is original

    def test_none_and_empty_values(self):
        assert classify(None).message == "Unknown error"
        assert classify({}).kind is FailureKind.FATAL

    def test_unprintable_value_does_not_raise(self):
        class Broken(Exception):
            def __str__(self):
                raise RuntimeError("no")

        err = classify(Broken())
        assert err.kind is FailureKind.FATAL
        assert "Broken" in err.message


class TestDescribeFailure:
    def test_string_passthrough(self):
        assert describe_failure("plain") == "plain"

    def test_non_json_object_falls_back(self):
        assert describe_failure(object()).startswith('"<object object')

    def test_sdk_style_attributes(self):
        class APIError(Exception):
            code = 503
            status = "UNAVAILABLE"

        message = describe_failure(APIError("upstream said no"))
        assert "503" in message and "UNAVAILABLE" in message


class TestUserMessage:
    def test_sentinels(self):
        assert classify("caller does not have permission").user_message() == API_KEY_INVALID
        assert classify("429").user_message() == QUOTA_EXCEEDED

    def test_other_kinds_keep_message(self):
        assert classify("bad request").user_message() == "bad request"

    def test_exhausted_keeps_kind(self):
        err = exhausted(classify("503"), 15)
        assert err.kind is FailureKind.RETRYABLE
        assert err.exhausted and not err.retryable
        assert "15 attempts" in err.message
