"""Tests for retry utilities."""
import errno

import pytest

from rip_northbound.utils.retry import TRANSIENT_ERRNOS, is_transient_os_error, with_retry


class TestWithRetry:
    """Tests for retry decorator."""

    def test_sync_success_no_retry(self):
        """Successful sync function doesn't retry."""
        call_count = 0

        @with_retry(max_attempts=3)
        def succeeding_func():
            nonlocal call_count
            call_count += 1
            return "success"

        assert succeeding_func() == "success"
        assert call_count == 1

    def test_sync_transient_then_success(self):
        """Transient bind errors are retried."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.02, retry_if=is_transient_os_error)
        def bind():
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise OSError(errno.EADDRINUSE, "Address already in use")
            return "bound"

        assert bind() == "bound"
        assert call_count == 2

    def test_sync_permanent_error_not_retried(self):
        """Permission errors are raised on the first attempt."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.02, retry_if=is_transient_os_error)
        def bind():
            nonlocal call_count
            call_count += 1
            raise OSError(errno.EACCES, "Permission denied")

        with pytest.raises(OSError):
            bind()
        assert call_count == 1

    def test_sync_max_retries_exceeded(self):
        """The last error is re-raised after max attempts."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.02)
        def always_failing():
            nonlocal call_count
            call_count += 1
            raise OSError(errno.EAGAIN, "Try again")

        with pytest.raises(OSError):
            always_failing()
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_async_retry_then_success(self):
        """Async functions retry too."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.02)
        async def flaky():
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise OSError(errno.EINTR, "Interrupted")
            return "success"

        assert await flaky() == "success"
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_exception(self):
        """Non-retryable exceptions are not retried."""
        call_count = 0

        @with_retry(max_attempts=3, exceptions=(OSError,))
        async def raising_value_error():
            nonlocal call_count
            call_count += 1
            raise ValueError("Not retryable")

        with pytest.raises(ValueError):
            await raising_value_error()
        assert call_count == 1


class TestTransientErrors:
    """Tests for the transient errno set."""

    def test_addr_in_use_is_transient(self):
        assert errno.EADDRINUSE in TRANSIENT_ERRNOS
        assert is_transient_os_error(OSError(errno.EADDRINUSE, "in use"))

    def test_emfile_is_not_transient(self):
        """Descriptor exhaustion is reported, not retried."""
        assert not is_transient_os_error(OSError(errno.EMFILE, "too many"))

    def test_non_oserror_is_not_transient(self):
        assert not is_transient_os_error(ValueError("x"))
