"""
Unit tests for the transient-error retry helper.
"""

import httpx
import pytest
from unittest.mock import patch

from utils.retry_utils import retry_query, is_retryable_error


class CodedError(Exception):
    """Error carrying a database/network code, like postgrest's APIError."""

    def __init__(self, code):
        super().__init__(f"error {code}")
        self.code = code


class TestIsRetryableError:
    """Tests for is_retryable_error()"""

    @pytest.mark.parametrize("code", ["ECONNRESET", "PGRST301", "08006", "57P01", "40001"])
    def test_known_codes(self, code):
        assert is_retryable_error(CodedError(code))

    def test_network_errors(self):
        assert is_retryable_error(ConnectionError("reset"))
        assert is_retryable_error(TimeoutError())
        assert is_retryable_error(httpx.ConnectError("refused"))

    def test_other_errors(self):
        assert not is_retryable_error(CodedError("23505"))
        assert not is_retryable_error(ValueError("bad"))


class TestRetryQuery:
    """Tests for retry_query()"""

    def test_returns_first_success(self):
        with patch("utils.retry_utils.time.sleep") as sleep:
            assert retry_query(lambda: 42) == 42

        sleep.assert_not_called()

    def test_retries_then_succeeds(self):
        """Transient failures are retried with linear backoff."""
        # Arrange
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise CodedError("ETIMEDOUT")
            return "ok"

        retried = []

        # Act
        with patch("utils.retry_utils.time.sleep") as sleep:
            result = retry_query(flaky, max_retries=3, delay=0.5, on_retry=lambda e, n: retried.append(n))

        # Assert
        assert result == "ok"
        assert retried == [1, 2]
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_gives_up_after_max_retries(self):
        def always_fails():
            raise ConnectionError("down")

        with patch("utils.retry_utils.time.sleep"):
            with pytest.raises(ConnectionError):
                retry_query(always_fails, max_retries=2)

    def test_non_retryable_raises_immediately(self):
        calls = []

        def fails():
            calls.append(1)
            raise CodedError("23505")

        with patch("utils.retry_utils.time.sleep"):
            with pytest.raises(CodedError):
                retry_query(fails)

        assert len(calls) == 1
