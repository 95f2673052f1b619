"""Tests for transient network detection and two-tier error classification."""

import asyncio
import errno
import socket

import httpx
import pytest

from llm_operate.models.operate import ErrorCategory
from llm_operate.providers.base import ProviderError
from llm_operate.reliability.error_classifier import (
    ErrorClassifier,
    classify_without_provider,
    is_transient_network_error,
)
from tests.helpers.fake_adapter import (
    FakeAdapter,
    FakeRateLimitError,
    FakeRetryableError,
    FakeUnrecoverableError,
)
from tests.helpers.mock_exceptions import (
    CodedError,
    WrappedError,
    connection_reset,
    wrapped_in_chain,
)


class TestTransientNetworkDetection:
    """Test recognition of low-level network failures."""

    @pytest.mark.parametrize("error", [
        ConnectionResetError("reset"),
        ConnectionRefusedError("refused"),
        BrokenPipeError("pipe"),
        TimeoutError("timed out"),
        asyncio.TimeoutError(),
        socket.gaierror(socket.EAI_AGAIN, "Temporary failure in name resolution"),
        httpx.ConnectTimeout("connect timeout"),
        httpx.ReadError("read error"),
        httpx.RemoteProtocolError("peer closed connection"),
    ])
    def test_transient_exception_types(self, error):
        assert is_transient_network_error(error)

    @pytest.mark.parametrize("code", [
        "ECONNRESET", "ETIMEDOUT", "ECONNREFUSED", "ENOTFOUND",
        "EAI_AGAIN", "EPIPE", "ENETRESET", "ENETUNREACH",
    ])
    def test_transient_string_codes(self, code):
        assert is_transient_network_error(CodedError("request failed", code))

    def test_transient_errno(self):
        error = OSError(errno.ENETUNREACH, "unreachable")
        assert is_transient_network_error(error)

    @pytest.mark.parametrize("message", [
        "Network request failed",
        "socket hang up",
        "other side closed: TERMINATED",
    ])
    def test_transient_messages_are_case_insensitive(self, message):
        assert is_transient_network_error(Exception(message))

    def test_cause_chain_is_searched(self):
        assert is_transient_network_error(wrapped_in_chain(connection_reset(), depth=3))

    def test_explicit_cause_attribute_is_searched(self):
        inner = CodedError("fetch failed", "ECONNRESET")
        assert is_transient_network_error(WrappedError("upstream failed", WrappedError("fetch", inner)))

    def test_cyclic_cause_chain_terminates(self):
        first = RuntimeError("first")
        second = RuntimeError("second")
        first.__cause__ = second
        second.__cause__ = first
        assert not is_transient_network_error(first)

    @pytest.mark.parametrize("error", [
        ValueError("bad value"),
        KeyError("missing"),
        CodedError("bad request", "EINVAL"),
        "ECONNRESET",
        None,
    ])
    def test_non_transient(self, error):
        assert not is_transient_network_error(error)


class TestClassifyWithoutProvider:
    def test_transient_is_retryable(self):
        classified = classify_without_provider(connection_reset())
        assert classified.category == ErrorCategory.RETRYABLE
        assert classified.should_retry

    def test_everything_else_is_unknown_and_retried(self):
        classified = classify_without_provider(ValueError("boom"))
        assert classified.category == ErrorCategory.UNKNOWN
        assert classified.should_retry


class TestErrorClassifier:
    """Test the combination of adapter classification and transient detection."""

    @pytest.fixture
    def classifier(self):
        return ErrorClassifier(FakeAdapter())

    def test_rate_limit_is_not_retried(self, classifier):
        classified = classifier.classify(FakeRateLimitError("slow down"))
        assert classified.category == ErrorCategory.RATE_LIMIT
        assert not classified.should_retry
        assert classified.suggested_delay == 60.0

    def test_adapter_retryable(self, classifier):
        classified = classifier.classify(FakeRetryableError("overloaded"))
        assert classified.category == ErrorCategory.RETRYABLE
        assert classified.should_retry

    def test_adapter_unrecoverable(self, classifier):
        classified = classifier.classify(FakeUnrecoverableError("bad key"))
        assert classified.category == ErrorCategory.UNRECOVERABLE
        assert not classified.should_retry
        assert not classifier.is_retryable(FakeUnrecoverableError("bad key"))

    def test_transient_cause_overrides_unrecoverable(self, classifier):
        error = FakeUnrecoverableError("request failed")
        error.__cause__ = CodedError("read failed", "ECONNRESET")
        classified = classifier.classify(error)
        assert classified.category == ErrorCategory.RETRYABLE
        assert classified.should_retry

    def test_unknown_error_is_retried(self, classifier):
        classified = classifier.classify(ValueError("what happened"))
        assert classified.category == ErrorCategory.UNKNOWN
        assert classified.should_retry
        assert not classifier.is_known_error(ValueError("what happened"))

    def test_provider_error_status_codes(self, classifier):
        assert classifier.classify(ProviderError("limited", "fake", status_code=429)).category == ErrorCategory.RATE_LIMIT
        assert classifier.classify(ProviderError("down", "fake", status_code=503)).should_retry
        assert not classifier.classify(ProviderError("denied", "fake", status_code=403)).should_retry

    def test_without_adapter(self):
        classifier = ErrorClassifier()
        assert classifier.classify(connection_reset()).category == ErrorCategory.RETRYABLE
        assert classifier.classify(ValueError("x")).category == ErrorCategory.UNKNOWN
