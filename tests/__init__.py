"""Unit tests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from zoneplayer.dispatcher import Dispatcher

_LOGGER = logging.getLogger(__name__)

EMULATOR_PORT = 11400
ADDRESS = f"127.0.0.1:{EMULATOR_PORT}"
UNREACHABLE_ADDRESS = f"127.0.0.1:{EMULATOR_PORT + 1}"


def create_signal(dispatcher: Dispatcher, target_event: str) -> asyncio.Event:
    """Returns an asyncio event that is triggered when event is emitted."""
    trigger = asyncio.Event()

    def handler(event, *args):
        if event == target_event:
            trigger.set()

    dispatcher.connect(handler)

    return trigger


def collect(dispatcher: Dispatcher, target_event: str) -> list[tuple]:
    """Returns a list collecting the args of every target_event emitted."""
    received: list[tuple] = []

    def handler(event, *args):
        if event == target_event:
            received.append(args)

    dispatcher.connect(handler)

    return received


async def wait_until(predicate: Callable[[], bool], timeout: float = 2) -> None:
    """Waits until predicate holds."""

    async def _wait():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_wait(), timeout)
