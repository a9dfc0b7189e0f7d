from unittest.mock import patch

import pytest

from oadp_e2e.errors import PollTimeoutError, TransportError
from oadp_e2e.poller import poll


class FakeClock:
    def __init__(self):
        self.now = 1000.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    fake = FakeClock()
    with patch("oadp_e2e.poller.time", fake):
        yield fake


def test_true_on_first_check_does_not_sleep(clock):
    calls = []

    def condition():
        calls.append(1)
        return True

    poll(condition, interval=5, timeout=60)

    assert len(calls) == 1
    assert clock.sleeps == []


def test_retries_at_interval_until_true(clock):
    results = iter([False, False, True])

    poll(lambda: next(results), interval=5, timeout=60)

    assert clock.sleeps == [5, 5]


@pytest.mark.parametrize("interval,timeout", [(5, 12), (5, 15), (2, 1), (3, 0)])
def test_times_out_within_one_interval_of_deadline(clock, interval, timeout):
    start = clock.now

    with pytest.raises(PollTimeoutError):
        poll(lambda: False, interval=interval, timeout=timeout)

    elapsed = clock.now - start
    assert timeout <= elapsed <= timeout + interval


def test_timeout_error_is_builtin_timeout(clock):
    with pytest.raises(TimeoutError):
        poll(lambda: False, interval=1, timeout=2)


def test_condition_error_aborts_immediately(clock):
    def condition():
        raise TransportError("connection refused")

    with pytest.raises(TransportError):
        poll(condition, interval=5, timeout=60)
    assert clock.sleeps == []


def test_condition_error_after_retries_propagates(clock):
    outcomes = iter([False, RuntimeError("boom")])

    def condition():
        outcome = next(outcomes)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    with pytest.raises(RuntimeError, match="boom"):
        poll(condition, interval=1, timeout=60)
    assert clock.sleeps == [1]


@pytest.mark.parametrize("interval,timeout", [(0, 10), (-1, 10), (1, -1)])
def test_rejects_invalid_timing(clock, interval, timeout):
    with pytest.raises(ValueError):
        poll(lambda: True, interval=interval, timeout=timeout)


def test_uses_settings_defaults(clock):
    with patch("oadp_e2e.poller.settings") as mock_settings:
        mock_settings.POLL_INTERVAL = 7
        mock_settings.POLL_TIMEOUT = 10
        with pytest.raises(PollTimeoutError):
            poll(lambda: False)
    assert clock.sleeps == [7, 3]
