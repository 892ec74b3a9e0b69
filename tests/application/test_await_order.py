"""Tests for the Convergence Poller."""

import threading

import pytest

from orderflow.application.await_order import OrderVisibilityPoller, PollPolicy, Visibility
from orderflow.domain.exceptions import TransientError

FAST = PollPolicy(max_attempts=5, delay_seconds=0)


class _Reader:
    """Returns None until the configured attempt, optionally raising first."""

    def __init__(self, visible_on: int | None, errors: int = 0) -> None:
        self.visible_on = visible_on
        self.errors = errors
        self.calls = 0

    def __call__(self, order_id: str):
        self.calls += 1
        if self.calls <= self.errors:
            raise TransientError("store unavailable")
        if self.visible_on is not None and self.calls >= self.visible_on:
            return object()
        return None


class TestPollPolicy:

    def test_defaults(self):
        policy = PollPolicy()
        assert policy.max_attempts == 20
        assert policy.delay_seconds == 0.5
        assert policy.ceiling_seconds == 10.0

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            PollPolicy(max_attempts=0)

    def test_rejects_negative_delay(self):
        with pytest.raises(ValueError):
            PollPolicy(delay_seconds=-1)


class TestAwaitVisible:

    def test_visible_immediately(self):
        reader = _Reader(visible_on=1)
        assert OrderVisibilityPoller(reader, FAST).await_visible("o-1") is Visibility.VISIBLE
        assert reader.calls == 1

    def test_visible_after_a_few_attempts(self):
        reader = _Reader(visible_on=3)
        assert OrderVisibilityPoller(reader, FAST).await_visible("o-1") is Visibility.VISIBLE
        assert reader.calls == 3

    def test_not_yet_visible_after_max_attempts(self):
        reader = _Reader(visible_on=None)
        assert OrderVisibilityPoller(reader, FAST).await_visible("o-1") is Visibility.NOT_YET_VISIBLE
        assert reader.calls == 5

    def test_read_errors_are_retried_not_raised(self):
        reader = _Reader(visible_on=1, errors=2)
        assert OrderVisibilityPoller(reader, FAST).await_visible("o-1") is Visibility.VISIBLE
        assert reader.calls == 3

    def test_unexpected_errors_are_swallowed_too(self):
        def broken(order_id):
            raise RuntimeError("boom")

        assert OrderVisibilityPoller(broken, FAST).await_visible("o-1") is Visibility.NOT_YET_VISIBLE

    def test_policy_can_be_overridden_per_call(self):
        reader = _Reader(visible_on=None)
        poller = OrderVisibilityPoller(reader, FAST)
        poller.await_visible("o-1", policy=PollPolicy(max_attempts=2, delay_seconds=0))
        assert reader.calls == 2

    def test_cancel_ends_the_wait(self):
        reader = _Reader(visible_on=None)
        cancel = threading.Event()
        cancel.set()
        poller = OrderVisibilityPoller(reader, PollPolicy(max_attempts=20, delay_seconds=30))

        assert poller.await_visible("o-1", cancel=cancel) is Visibility.NOT_YET_VISIBLE
        assert reader.calls == 0

    def test_cancel_from_another_thread(self):
        reader = _Reader(visible_on=None)
        cancel = threading.Event()
        poller = OrderVisibilityPoller(reader, PollPolicy(max_attempts=20, delay_seconds=30))
        threading.Timer(0.05, cancel.set).start()

        assert poller.await_visible("o-1", cancel=cancel) is Visibility.NOT_YET_VISIBLE
