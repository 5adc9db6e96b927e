from unittest.mock import Mock

import pytest

from genagent.core.exceptions import BackendError, NetworkError
from genagent.utilities.retry import DEFAULT_RETRY_AFTER, outcome_exception, wait_retry_after


def raised(ex):
    """Retry state for an attempt that raised `ex`."""
    outcome = Mock(failed=True)
    outcome.exception.return_value = ex
    return Mock(outcome=outcome)


def returned(value):
    """Retry state for an attempt that returned `value`."""
    outcome = Mock(failed=False)
    outcome.result.return_value = value
    return Mock(outcome=outcome)


class TestOutcomeException:
    def test_no_outcome(self):
        assert outcome_exception(Mock(outcome=None)) is None

    def test_raised(self):
        ex = NetworkError("down")
        assert outcome_exception(raised(ex)) is ex

    def test_carried_on_result(self):
        ex = NetworkError("down")
        assert outcome_exception(returned(Mock(exception=ex))) is ex

    def test_plain_result(self):
        assert outcome_exception(returned(42)) is None


class TestWaitRetryAfter:
    def test_uses_retry_after(self):
        ex = BackendError("slow down", status_code=429, retry_after=7)
        assert wait_retry_after(raised(ex)) == 8

    def test_default_when_header_missing(self):
        ex = BackendError("slow down", status_code=429)
        assert wait_retry_after(raised(ex)) == DEFAULT_RETRY_AFTER + 1

    def test_result_carrying_rate_limit(self):
        ex = BackendError("slow down", status_code=429, retry_after=2)
        assert wait_retry_after(returned(Mock(exception=ex))) == 3

    @pytest.mark.parametrize(
        "ex",
        [
            BackendError("boom", status_code=500),
            BackendError("bad request", status_code=400),
            NetworkError("down"),
        ],
    )
    def test_other_failures_do_not_wait(self, ex):
        assert wait_retry_after(raised(ex)) == 0
