"""HTTP server receiving event notifications from ZonePlayers."""

from __future__ import annotations

import logging
import socket

from aiohttp import web

from . import const
from .dispatcher import Dispatcher
from .error import ListenerError, format_error

_LOGGER = logging.getLogger(__name__)

NOTIFY_PATH = "/notify"


class ZpListener:
    """Listener for UPnP event notifications.

    Each NOTIFY request is dispatched as EVENT_LISTENER_NOTIFY with the
    subscription id and the raw body. Readiness and errors are dispatched as
    EVENT_LISTENER_LISTENING and EVENT_LISTENER_ERROR.
    """

    def __init__(
        self,
        dispatcher: Dispatcher | None = None,
        *,
        host: str = "0.0.0.0",
        port: int = 0,
    ) -> None:
        """Initializes listener."""
        self._dispatcher = dispatcher if dispatcher is not None else Dispatcher()
        self._host = host
        self._port = port
        self._runner: web.AppRunner | None = None

    @property
    def dispatcher(self) -> Dispatcher:
        """Returns dispatcher instance."""
        return self._dispatcher

    @property
    def port(self) -> int:
        """Returns port listened on, once started."""
        return self._port

    @property
    def url(self) -> str:
        """Returns the base URL of the notification endpoint."""
        return f"http://{self._host}:{self._port}{NOTIFY_PATH}"

    @property
    def is_listening(self) -> bool:
        """Returns if the server is running."""
        return self._runner is not None

    async def start(self) -> None:
        """Starts the server."""
        if self._runner is not None:
            return

        app = web.Application()
        app.router.add_route(
            const.METH_NOTIFY, NOTIFY_PATH + "/{device}/{service}", self._handle_notify
        )
        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._host, self._port)
        try:
            await site.start()
        except OSError as err:
            await runner.cleanup()
            raise ListenerError(
                f"Cannot listen on {self._host}:{self._port}: {format_error(err)}"
            ) from err

        self._runner = runner
        self._port = runner.addresses[0][1]
        _LOGGER.debug("Listening on %s", self.url)
        self._dispatcher.send(const.EVENT_LISTENER_LISTENING, self.url)

    async def stop(self) -> None:
        """Stops the server."""
        if self._runner is None:
            return
        runner = self._runner
        self._runner = None
        await runner.cleanup()
        _LOGGER.debug("Stopped listening on port %s", self._port)

    def callback_url(self, remote_ip: str, device: str, service: str) -> str:
        """Returns the URL a device at remote_ip uses to reach this listener."""
        if self._runner is None:
            raise ListenerError("Listener not started")
        address = self.local_address(remote_ip)
        return f"http://{address}:{self._port}{NOTIFY_PATH}/{device}/{service}"

    @staticmethod
    def local_address(remote_ip: str) -> str:
        """Returns address of the local interface routing to remote_ip."""
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                # Connecting a datagram socket sends nothing, it only selects a route.
                sock.connect((remote_ip, const.DEFAULT_PORT))
                return sock.getsockname()[0]
        except OSError as err:
            raise ListenerError(
                f"No route to {remote_ip}: {format_error(err)}"
            ) from err

    async def _handle_notify(self, request: web.Request) -> web.Response:
        sid = request.headers.get("SID")
        if not sid:
            self._dispatcher.send(
                const.EVENT_LISTENER_ERROR,
                ListenerError(f"NOTIFY {request.path} without SID"),
            )
            return web.Response(status=412)
        body = await request.read()
        _LOGGER.debug("NOTIFY %s from %s: %d bytes", sid, request.remote, len(body))
        self._dispatcher.send(const.EVENT_LISTENER_NOTIFY, sid, body)
        return web.Response()
