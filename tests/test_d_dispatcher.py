"""Tests for dispatcher module."""

import asyncio

import pytest

from zoneplayer.dispatcher import Dispatcher, Receiver


def test_send_calls_targets_in_order():
    """Test plain targets receive events synchronously, in connection order."""
    dispatcher = Dispatcher()
    received = []
    dispatcher.connect(lambda event, *args: received.append(("first", event, args)))
    dispatcher.connect(lambda event, *args: received.append(("second", event, args)))
    dispatcher.send("event", 1, 2)
    assert received == [("first", "event", (1, 2)), ("second", "event", (1, 2))]


def test_disconnect():
    """Test disconnected receivers no longer receive events."""
    dispatcher = Dispatcher()
    received = []
    receiver = dispatcher.connect(lambda event, *args: received.append(event))
    assert isinstance(receiver, Receiver)
    receiver.disconnect()
    receiver.disconnect()
    dispatcher.send("event")
    assert not received


def test_disconnect_all():
    """Test disconnecting all receivers."""
    dispatcher = Dispatcher()
    received = []
    dispatcher.connect(lambda event, *args: received.append(event))
    dispatcher.connect(lambda event, *args: received.append(event))
    dispatcher.disconnect_all()
    dispatcher.send("event")
    assert not received


def test_target_errors_isolated(caplog):
    """Test an exception in a target does not reach the sender or other targets."""
    dispatcher = Dispatcher()
    received = []

    def failing(event, *args):
        raise RuntimeError("boom")

    dispatcher.connect(failing)
    dispatcher.connect(lambda event, *args: received.append(event))
    dispatcher.send("event")
    assert received == ["event"]
    assert "boom" in caplog.text


def test_target_may_disconnect_while_dispatching():
    """Test a target disconnecting itself during send."""
    dispatcher = Dispatcher()
    received = []
    receivers = []

    def once(event, *args):
        received.append(event)
        receivers[0].disconnect()

    receivers.append(dispatcher.connect(once))
    dispatcher.send("first")
    dispatcher.send("second")
    assert received == ["first"]


@pytest.mark.asyncio
async def test_coroutine_target():
    """Test coroutine targets are scheduled on the running loop."""
    dispatcher = Dispatcher()
    done = asyncio.Event()
    received = []

    async def target(event, *args):
        received.append((event, args))
        done.set()

    dispatcher.connect(target)
    dispatcher.send("event", "arg")
    await asyncio.wait_for(done.wait(), 1)
    assert received == [("event", ("arg",))]


@pytest.mark.asyncio
async def test_coroutine_target_errors_logged(caplog):
    """Test an exception in a coroutine target is logged."""
    dispatcher = Dispatcher()
    done = asyncio.Event()

    async def failing(event, *args):
        done.set()
        raise RuntimeError("boom")

    dispatcher.connect(failing)
    dispatcher.send("event")
    await asyncio.wait_for(done.wait(), 1)
    for _ in range(3):
        await asyncio.sleep(0)
    assert "Unhandled exception in receiver RuntimeError('boom')" in caplog.text
    assert not dispatcher._tasks
