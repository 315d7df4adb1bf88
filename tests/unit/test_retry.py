"""Tests for the bounded read retry policy."""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from campusnet.core.exceptions import TransientStoreError
from campusnet.core.retry import RetryConfig, calculate_delay, configure_retry, retry_read
from campusnet.repositories.chat_repository import ChatRepository


def _operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("server closed the connection"))


class FlakyRepository:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0
        self.recovered = 0

    def _recover_from_transient(self) -> None:
        self.recovered += 1

    @retry_read(RetryConfig(attempts=3, initial_delay=0.0))
    def read(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise _operational_error()
        return "rows"


class TestCalculateDelay:
    def test_grows_exponentially(self):
        config = RetryConfig(initial_delay=1.0, multiplier=2.0, max_delay=100.0, jitter=0.0)

        assert calculate_delay(0, config) == 1.0
        assert calculate_delay(1, config) == 2.0
        assert calculate_delay(3, config) == 8.0

    def test_capped_at_max_delay(self):
        config = RetryConfig(initial_delay=1.0, multiplier=10.0, max_delay=5.0, jitter=0.0)

        assert calculate_delay(4, config) == 5.0

    def test_jitter_stays_in_range(self):
        config = RetryConfig(initial_delay=1.0, jitter=0.25)

        for _ in range(50):
            assert 0.75 <= calculate_delay(0, config) <= 1.25


@patch("campusnet.core.retry.time.sleep")
class TestRetryRead:
    def test_success_without_failures(self, mock_sleep):
        repo = FlakyRepository(failures=0)

        assert repo.read() == "rows"
        assert repo.calls == 1
        mock_sleep.assert_not_called()

    def test_recovers_session_between_attempts(self, mock_sleep):
        repo = FlakyRepository(failures=2)

        assert repo.read() == "rows"
        assert repo.calls == 3
        assert repo.recovered == 2

    def test_gives_up_with_transient_store_error(self, mock_sleep):
        repo = FlakyRepository(failures=10)

        with pytest.raises(TransientStoreError) as exc_info:
            repo.read()

        assert repo.calls == 3
        assert exc_info.value.status_code == 503
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_non_transient_errors_are_not_retried(self, mock_sleep):
        fn = MagicMock(side_effect=ValueError("bug"))
        wrapped = retry_read(RetryConfig(attempts=5))(fn)

        with pytest.raises(ValueError):
            wrapped()

        assert fn.call_count == 1
        mock_sleep.assert_not_called()

    def test_default_config_follows_configured_settings(self, mock_sleep, test_settings):
        fn = MagicMock(side_effect=_operational_error())
        wrapped = retry_read()(fn)

        configure_retry(test_settings.model_copy(update={"store_retry_attempts": 4}))
        with pytest.raises(TransientStoreError):
            wrapped()
        assert fn.call_count == 4

        fn.reset_mock()
        configure_retry(test_settings)
        with pytest.raises(TransientStoreError):
            wrapped()
        assert fn.call_count == 2

    def test_create_app_applies_retry_settings(self, mock_sleep, app, container):
        session = MagicMock()
        session.execute.side_effect = _operational_error()
        repo = ChatRepository(session)

        with pytest.raises(TransientStoreError):
            repo.list_for_user(1)

        assert container.settings.store_retry_attempts == 2
        assert session.execute.call_count == 2
