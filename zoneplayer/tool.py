"""Lifecycle of a zpinfo run: query the description or monitor events."""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable
from typing import Any

from . import const
from .client import ZpClient
from .dispatcher import Dispatcher, Receiver
from .error import format_error
from .event import EventRecord
from .fetcher import enrich, fetch_description
from .formatter import json_formatter
from .listener import ZpListener
from .options import Options

_LOGGER = logging.getLogger(__name__)

SIGNALS = (signal.SIGINT, signal.SIGTERM)

# Dispatcher events handled by the orchestrator, one at a time, in arrival order.
INBOX_EVENTS = (
    const.EVENT_LISTENER_LISTENING,
    const.EVENT_LISTENER_ERROR,
    const.EVENT_CLIENT_EVENT,
    const.EVENT_CLIENT_ERROR,
    const.EVENT_SIGNAL,
)


class ShutdownToken:
    """Cancellation token releasing a running monitor.

    Termination signals are delivered through release(), either by the handlers
    that install() binds on the running loop, or by calling it directly.
    """

    def __init__(self) -> None:
        """Initializes token."""
        self._dispatcher = Dispatcher()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._released: list[str] = []

    @property
    def released(self) -> list[str]:
        """Returns the names of the signals delivered so far."""
        return list(self._released)

    def connect(self, target: Callable) -> Receiver:
        """Registers target to receive (EVENT_SIGNAL, name) on release."""
        return self._dispatcher.connect(target)

    def release(self, name: str) -> None:
        """Delivers termination signal name."""
        self._released.append(name)
        self._dispatcher.send(const.EVENT_SIGNAL, name)

    def install(self) -> None:
        """Binds the termination signals of the process to release()."""
        if self._loop is not None:
            return
        loop = asyncio.get_running_loop()
        for sig in SIGNALS:
            try:
                loop.add_signal_handler(sig, self.release, sig.name)
            except NotImplementedError:
                # Not available on some platforms (e.g. Windows)
                pass
        self._loop = loop

    def uninstall(self) -> None:
        """Restores the default handling of the termination signals."""
        if self._loop is None:
            return
        for sig in SIGNALS:
            try:
                self._loop.remove_signal_handler(sig)
            except NotImplementedError:
                pass
        self._loop = None


class ZpInfo:
    """Orchestrates a single run against one ZonePlayer.

    In query mode the description is fetched, optionally enriched with the
    service control point definitions, printed, and the run ends. In monitor
    mode (daemon or service) the description is fetched to validate the device,
    the events of all its services are subscribed to and logged until the
    shutdown token is released.

    Fatal errors propagate from run() as ZonePlayerError. Errors reported by the
    client or listener while running are logged only.
    """

    def __init__(self, options: Options, *, token: ShutdownToken | None = None):
        """Initializes orchestrator."""
        self._options = options
        self._token = token if token is not None else ShutdownToken()
        self._format: Callable[[Any], str] = json_formatter(options.no_white_space)

        self._dispatcher = Dispatcher()
        self._client = ZpClient(
            options.address, timeout=options.timeout, dispatcher=self._dispatcher
        )
        self._listener = ZpListener(self._dispatcher)

        self._state = const.STATE_STARTING
        self._inbox: asyncio.Queue[tuple[str, tuple]] = asyncio.Queue()
        self._receivers = [
            self._dispatcher.connect(self._enqueue),
            self._token.connect(self._enqueue),
        ]

    @property
    def options(self) -> Options:
        """Returns options of the run."""
        return self._options

    @property
    def client(self) -> ZpClient:
        """Returns client instance."""
        return self._client

    @property
    def listener(self) -> ZpListener:
        """Returns listener instance."""
        return self._listener

    @property
    def token(self) -> ShutdownToken:
        """Returns shutdown token."""
        return self._token

    @property
    def state(self) -> str:
        """Returns lifecycle state."""
        return self._state

    async def run(self) -> None:
        """Runs the tool to completion."""
        self._set_state(const.STATE_STARTING)
        try:
            description = await fetch_description(self._client)

            if not self._options.is_monitor:
                if self._options.scdp:
                    await enrich(self._client, description)
                print(self._format(description.as_dict()))
                return

            await self._listen()
            await self._dispatch()
        finally:
            self._token.uninstall()
            await self._listener.stop()
            for receiver in self._receivers:
                receiver.disconnect()
            self._set_state(const.STATE_TERMINATED)

    async def _listen(self) -> None:
        self._set_state(const.STATE_LISTENING)
        self._token.install()
        await self._listener.start()
        await self._client.open(self._listener)
        self._set_state(const.STATE_RUNNING)

    async def _dispatch(self) -> None:
        """Handles inbox messages one at a time until shut down."""
        while self._state == const.STATE_RUNNING:
            event, args = await self._inbox.get()
            await self._handle(event, *args)

    async def _handle(self, event: str, *args) -> None:
        if event == const.EVENT_CLIENT_EVENT:
            record = EventRecord(*args)
            _LOGGER.info(
                "%s: %s %s event: %s",
                self._options.address,
                record.device,
                record.service,
                self._format(record.payload),
            )

        elif event == const.EVENT_LISTENER_LISTENING:
            _LOGGER.info("listening on %s", args[0])

        elif event in (const.EVENT_LISTENER_ERROR, const.EVENT_CLIENT_ERROR):
            _LOGGER.error("error: %s", format_error(args[0]))

        elif event == const.EVENT_SIGNAL:
            if self._state != const.STATE_RUNNING:
                _LOGGER.debug("Ignoring %s while %s", args[0], self._state)
                return
            await self._shutdown(args[0])

    async def _shutdown(self, name: str) -> None:
        self._set_state(const.STATE_SHUTTING_DOWN)
        _LOGGER.info("Got %s, shutting down", name)
        try:
            await self._client.close()
        finally:
            await self._listener.stop()
            self._set_state(const.STATE_TERMINATED)

    def _enqueue(self, event: str, *args) -> None:
        if event in INBOX_EVENTS:
            self._inbox.put_nowait((event, args))

    def _set_state(self, state: str) -> None:
        if state != self._state:
            _LOGGER.debug("State %s -> %s", self._state, state)
        self._state = state
