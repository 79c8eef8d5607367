"""
Tests for retry logic around database commits.
"""

import time

import pytest

from internmatch.retry import RetryError, exponential_backoff, is_transient_db_error


class FlakyCommit:
    """Callable that reports a locked database a fixed number of times."""

    def __init__(self, failures, message="database is locked"):
        self.failures = failures
        self.message = message
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(self.message)
        return "committed"


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(time, "sleep", sleeps.append)
    return sleeps


class TestExponentialBackoff:
    """Test the retry decorator."""

    def test_first_attempt_succeeds(self, no_sleep):
        commit = FlakyCommit(failures=0)
        assert exponential_backoff(max_retries=3)(commit)() == "committed"
        assert commit.calls == 1
        assert no_sleep == []

    def test_recovers_after_lock_clears(self):
        commit = FlakyCommit(failures=2)
        assert exponential_backoff(max_retries=3)(commit)() == "committed"
        assert commit.calls == 3

    def test_gives_up_after_max_retries(self):
        commit = FlakyCommit(failures=10)

        with pytest.raises(RetryError) as exc:
            exponential_backoff(max_retries=2)(commit)()

        assert commit.calls == 3
        assert "Failed after 3 attempts" in str(exc.value)
        assert isinstance(exc.value.__cause__, ConnectionError)

    def test_zero_retries_means_one_attempt(self):
        commit = FlakyCommit(failures=1)
        with pytest.raises(RetryError):
            exponential_backoff(max_retries=0)(commit)()
        assert commit.calls == 1

    def test_unlisted_exception_propagates(self):
        @exponential_backoff(max_retries=3, exceptions=(ConnectionError,))
        def bad_input():
            raise ValueError("reservation for GEN must be non-negative")

        with pytest.raises(ValueError):
            bad_input()

    def test_retry_if_rejects(self):
        commit = FlakyCommit(failures=5, message="no such table: students")

        with pytest.raises(ConnectionError):
            exponential_backoff(max_retries=3, retry_if=is_transient_db_error)(commit)()

        assert commit.calls == 1

    def test_on_retry_callback_and_delays(self, no_sleep):
        seen = []
        commit = FlakyCommit(failures=10)

        wrapped = exponential_backoff(
            max_retries=3,
            base_delay=0.5,
            max_delay=1.5,
            on_retry=lambda attempt, e, delay: seen.append((attempt, delay)),
        )(commit)

        with pytest.raises(RetryError):
            wrapped()

        assert no_sleep == [0.5, 1.0, 1.5]
        assert seen == [(1, 0.5), (2, 1.0), (3, 1.5)]


class TestTransientDetection:
    """Test database error classification."""

    @pytest.mark.parametrize("message", [
        "database is locked",
        "(sqlite3.OperationalError) Database is busy",
        "database table is locked: allocations",
    ])
    def test_lock_contention_is_transient(self, message):
        assert is_transient_db_error(Exception(message))

    @pytest.mark.parametrize("message", [
        "no such table: students",
        "UNIQUE constraint failed: allocations.student_id",
    ])
    def test_schema_errors_are_not(self, message):
        assert not is_transient_db_error(Exception(message))
