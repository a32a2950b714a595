import asyncio

import pytest

from cephas.services.api_client import ApiError
from cephas.services.notifications import NotificationPoller
from cephas.state import AppState


class FakeSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def scripted(*outcomes):
    """Fetch function returning (or raising) the given outcomes in order."""
    remaining = list(outcomes)
    calls = []

    async def fetch():
        calls.append(1)
        outcome = remaining.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    fetch.calls = calls
    return fetch


def make_poller(fetch, state, messages=None, sleep=None):
    return NotificationPoller(
        fetch,
        state,
        interval=30,
        max_retries=3,
        backoff=1.0,
        on_error=(messages.append if messages is not None else None),
        sleep=sleep or FakeSleep(),
    )


def test_successful_poll_replaces_feed():
    state = AppState()
    fetch = scripted([{"id": 1, "title": "Order assigned", "read": False}])
    assert asyncio.run(make_poller(fetch, state).poll_once())
    assert [n.title for n in state.notifications] == ["Order assigned"]


def test_retries_with_linear_backoff_then_recovers():
    state = AppState()
    sleep = FakeSleep()
    messages = []
    fetch = scripted(ApiError("down"), ApiError("down"), [{"id": 2, "title": "Low stock"}])
    assert asyncio.run(make_poller(fetch, state, messages, sleep).poll_once())
    assert sleep.calls == [1.0, 2.0]
    assert messages == [
        "Failed to load notifications. Retrying... (1/3)",
        "Failed to load notifications. Retrying... (2/3)",
    ]
    assert [n.id for n in state.notifications] == [2]


def test_gives_up_after_max_retries_and_empties_feed():
    state = AppState()
    sleep = FakeSleep()
    messages = []
    fetch = scripted(*[ApiError("down")] * 4)
    poller = make_poller(fetch, state, messages, sleep)

    assert asyncio.run(poller.poll_once()) is False
    assert len(fetch.calls) == 4
    assert sleep.calls == [1.0, 2.0, 3.0]
    assert messages[-1] == "Failed to load notifications after multiple attempts"
    assert state.notifications == []


def test_malformed_payload_counts_as_failure():
    state = AppState()
    fetch = scripted([{"read": "maybe"}], [{"id": 3, "title": "ok"}])
    assert asyncio.run(make_poller(fetch, state).poll_once())
    assert [n.id for n in state.notifications] == [3]


def test_other_errors_propagate():
    fetch = scripted(RuntimeError("bug"))
    with pytest.raises(RuntimeError):
        asyncio.run(make_poller(fetch, AppState()).poll_once())


def test_stop_cancels_loop_and_clears_feed():
    state = AppState()

    async def go():
        fetch = scripted(*[[{"id": i, "title": "tick"}] for i in range(100)])
        poller = NotificationPoller(fetch, state, interval=0.01, max_retries=3, backoff=0)
        poller.start()
        poller.start()
        for _ in range(50):
            if state.notifications:
                break
            await asyncio.sleep(0.01)
        assert poller.running
        assert state.notifications
        await poller.stop()
        return poller

    poller = asyncio.run(go())
    assert not poller.running
    assert state.notifications == []
