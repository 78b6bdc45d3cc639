"""Class handling the network protocol exchange with a ZonePlayer."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin

import aiohttp
import dns.asyncresolver
import dns.exception

from . import const
from .description import DeviceDescription, element_value, parse_xml
from .dispatcher import Dispatcher
from .error import (
    CloseError,
    DeviceUnreachableError,
    ProtocolError,
    ZonePlayerError,
    format_error,
)
from .event import parse_notify

if TYPE_CHECKING:
    from dns.rdtypes.IN.A import A

    from .dispatcher import Receiver
    from .listener import ZpListener

_LOGGER = logging.getLogger(__name__)

_TIMEOUT_PATTERN = re.compile(r"Second-([0-9]+)", re.IGNORECASE)


def split_address(address: str) -> tuple[str, int, str | None]:
    """Splits host[:port], returning host, port and an error for a bad address.

    The error is reported once the device is contacted.
    """
    if address.count(":") > 1:
        error = f"{address}: not an IPv4 address or host name"
        return address, const.DEFAULT_PORT, error
    host, sep, port = address.partition(":")
    if not sep:
        return host, const.DEFAULT_PORT, None
    if not (port.isascii() and port.isdigit()) or not 0 < int(port) < 65536:
        return host, const.DEFAULT_PORT, f"{address}: invalid port"
    return host, int(port), None


@dataclass
class Subscription:
    """Event subscription to a service of a device."""

    sid: str
    url: str
    device_id: str
    service_id: str
    timeout: int = const.DEFAULT_SUBSCRIPTION_TIMEOUT


class ZpClient:
    """Client for a single ZonePlayer.

    Fetches the device description and service control point definitions, and
    subscribes to the events of all services. Events and asynchronous errors are
    reported through the dispatcher as EVENT_CLIENT_EVENT and EVENT_CLIENT_ERROR.
    """

    def __init__(
        self,
        address: str,
        *,
        timeout: float = const.DEFAULT_TIMEOUT,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        """Initializes client."""
        self._host, self._port, self._address_error = split_address(address)
        self._timeout = timeout
        self._dispatcher = dispatcher if dispatcher is not None else Dispatcher()

        self._ip: str | None = None
        self._description: DeviceDescription | None = None
        self._subscriptions: dict[str, Subscription] = {}
        self._receiver: Receiver | None = None
        self._renew_task: asyncio.Task | None = None

    @property
    def dispatcher(self) -> Dispatcher:
        """Returns dispatcher instance."""
        return self._dispatcher

    @property
    def host(self) -> str:
        """Returns host of the ZonePlayer."""
        return self._host

    @property
    def port(self) -> int:
        """Returns port of the ZonePlayer."""
        return self._port

    @property
    def timeout(self) -> float:
        """Returns request timeout in seconds."""
        return self._timeout

    @property
    def ip(self) -> str | None:
        """Returns resolved ip address of the ZonePlayer."""
        return self._ip

    @property
    def base_url(self) -> str:
        """Returns URL that relative URLs in the description refer to."""
        return f"http://{self._ip or self._host}:{self._port}"

    @property
    def subscriptions(self) -> list[Subscription]:
        """Returns the active subscriptions."""
        return list(self._subscriptions.values())

    @property
    def is_open(self) -> bool:
        """Returns if subscribed to events."""
        return self._receiver is not None

    async def device_description(self) -> DeviceDescription:
        """Fetches the device description."""
        if self._address_error:
            raise DeviceUnreachableError(self._address_error)
        if self._ip is None:
            self._ip = await self.resolve(self._host, self._timeout)
        data, _ = await self._request("GET", self._url(const.DESCRIPTION_PATH))
        self._description = DeviceDescription.from_xml(data)
        _LOGGER.debug(
            "Fetched description of %s (%s)",
            self._description.device.friendly_name,
            self._ip,
        )
        return self._description

    async def service_definition(self, url: str) -> Any:
        """Fetches the service control point definition at url."""
        data, _ = await self._request("GET", self._url(url))
        return element_value(parse_xml(data))

    async def open(self, listener: ZpListener) -> None:
        """Subscribes to the events of every service of every device."""
        if self.is_open:
            raise ZonePlayerError("Already subscribed to events")
        description = self._description
        if description is None:
            description = await self.device_description()
        assert self._ip is not None

        self._receiver = self._dispatcher.connect(self._handle_event)
        try:
            for device in description.devices():
                for service in device.services:
                    if not service.event_sub_url:
                        continue
                    callback = listener.callback_url(
                        self._ip, device.device_id, service.service_id
                    )
                    url = self._url(service.event_sub_url)
                    sid, timeout = await self._subscribe(url, callback=callback)
                    self._subscriptions[sid] = Subscription(
                        sid, url, device.device_id, service.service_id, timeout
                    )
        except ZonePlayerError:
            await self._cancel_subscriptions()
            raise

        self._renew_task = asyncio.create_task(self._renew())
        _LOGGER.info(
            "Subscribed to %d service%s of %s",
            len(self._subscriptions),
            "" if len(self._subscriptions) == 1 else "s",
            self._ip,
        )

    async def close(self) -> None:
        """Unsubscribes from all events.

        Every subscription is cancelled, even when cancelling another one fails.
        """
        if not self.is_open:
            return
        errors = await self._cancel_subscriptions()
        if errors:
            raise CloseError(
                f"Failed to unsubscribe from {len(errors)} service"
                f"{'' if len(errors) == 1 else 's'}: {format_error(errors[0])}"
            ) from errors[0]
        _LOGGER.info("Unsubscribed from %s", self._ip)

    async def _cancel_subscriptions(self) -> list[ZonePlayerError]:
        if self._renew_task:
            self._renew_task.cancel()
            try:
                await self._renew_task
            except asyncio.CancelledError:
                pass
            self._renew_task = None

        if self._receiver:
            self._receiver.disconnect()
            self._receiver = None

        subscriptions = list(self._subscriptions.values())
        self._subscriptions.clear()

        errors: list[ZonePlayerError] = []
        for subscription in subscriptions:
            try:
                await self._request(
                    const.METH_UNSUBSCRIBE,
                    subscription.url,
                    headers={"SID": subscription.sid},
                )
            except ZonePlayerError as err:
                _LOGGER.warning(
                    "Failed to unsubscribe %s %s: %s",
                    subscription.device_id,
                    subscription.service_id,
                    err,
                )
                errors.append(err)
        return errors

    async def _subscribe(
        self, url: str, *, callback: str | None = None, sid: str | None = None
    ) -> tuple[str, int]:
        """Subscribes, or renews subscription sid, to events at url."""
        headers = {"TIMEOUT": f"Second-{const.DEFAULT_SUBSCRIPTION_TIMEOUT}"}
        if sid is None:
            headers["CALLBACK"] = f"<{callback}>"
            headers["NT"] = const.NT_EVENT
        else:
            headers["SID"] = sid
        _, response_headers = await self._request(
            const.METH_SUBSCRIBE, url, headers=headers
        )
        new_sid = response_headers.get("SID", sid)
        if not new_sid:
            raise ProtocolError(f"{url}: no SID in subscribe response")
        timeout = const.DEFAULT_SUBSCRIPTION_TIMEOUT
        match = _TIMEOUT_PATTERN.fullmatch(response_headers.get("TIMEOUT", ""))
        if match:
            timeout = int(match.group(1))
        _LOGGER.debug("Subscribed to %s as %s for %ss", url, new_sid, timeout)
        return new_sid, timeout

    async def _renew(self) -> None:
        """Renews subscriptions before the device expires them."""
        while True:
            timeout = min(
                (s.timeout for s in self._subscriptions.values()),
                default=const.DEFAULT_SUBSCRIPTION_TIMEOUT,
            )
            await asyncio.sleep(timeout * const.RENEW_FACTOR)
            for subscription in list(self._subscriptions.values()):
                try:
                    sid, timeout = await self._subscribe(
                        subscription.url, sid=subscription.sid
                    )
                except ZonePlayerError as err:
                    _LOGGER.warning(
                        "Failed to renew %s subscription: %s",
                        subscription.service_id,
                        err,
                    )
                    self._dispatcher.send(const.EVENT_CLIENT_ERROR, err)
                    continue
                subscription.timeout = timeout
                if sid != subscription.sid:
                    self._subscriptions.pop(subscription.sid, None)
                    subscription.sid = sid
                    self._subscriptions[subscription.sid] = subscription

    def _handle_event(self, event: str, *args) -> None:
        """Handles notifications received by the listener."""
        if event != const.EVENT_LISTENER_NOTIFY:
            return
        sid, body = args
        subscription = self._subscriptions.get(sid)
        if subscription is None:
            self._dispatcher.send(
                const.EVENT_CLIENT_ERROR,
                ProtocolError(f"Event for unknown subscription {sid}"),
            )
            return
        try:
            payload = parse_notify(body)
        except ProtocolError as err:
            self._dispatcher.send(const.EVENT_CLIENT_ERROR, err)
            return
        self._dispatcher.send(
            const.EVENT_CLIENT_EVENT,
            subscription.device_id,
            subscription.service_id,
            payload,
        )

    def _url(self, url: str) -> str:
        return urljoin(self.base_url, url)

    async def _request(
        self, method: str, url: str, headers: dict[str, str] | None = None
    ) -> tuple[bytes, Mapping[str, str]]:
        """Sends request, returning response body and headers."""
        if self._address_error:
            raise DeviceUnreachableError(self._address_error)
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        err_msg = f"{method} {url} failed"
        async with aiohttp.ClientSession(timeout=timeout) as session:
            try:
                async with session.request(method, url, headers=headers) as response:
                    if response.status != 200:
                        raise ProtocolError(f"{err_msg}: status {response.status}")
                    data = await response.read()
                    response_headers = response.headers.copy()
            except asyncio.TimeoutError as err:
                raise DeviceUnreachableError(f"{err_msg}: timeout") from err
            except aiohttp.ClientConnectionError as err:
                raise DeviceUnreachableError(f"{err_msg}: {format_error(err)}") from err
            except aiohttp.ClientError as err:
                raise ProtocolError(f"{err_msg}: {format_error(err)}") from err
        _LOGGER.debug("%s %s: %d bytes", method, url, len(data))
        return data, response_headers

    @staticmethod
    async def resolve(host: str, timeout: float = 5) -> str:
        """Resolve hostname to ip address."""

        async def _resolve(use_mdns: bool) -> str:
            resolver = dns.asyncresolver.Resolver()
            resolver.lifetime = timeout
            if use_mdns:
                resolver.nameservers = ["224.0.0.251"]
                resolver.port = 5353
            answer: list[A] = await resolver.resolve(host, rdtype="A")
            if len(answer) == 0:
                raise dns.exception.DNSException("Answer expected")
            return answer[0].to_text()

        ip_address = host

        if re.search("^[0-9.]+$", host) is None:
            try:
                # Attempt resolving via mDNS
                ip_address = await _resolve(True)
            except dns.exception.DNSException:
                try:
                    # Attempt resolving via DNS
                    ip_address = await _resolve(False)
                except dns.exception.DNSException as err:
                    raise DeviceUnreachableError(
                        f"Failed to resolve host {host}"
                    ) from err
        else:
            # Normalize IP by removing leading zeros
            ip_address = re.sub(r"\b0+(\d)", r"\1", ip_address)

        if ip_address != host:
            _LOGGER.debug("Resolved %s to %s", host, ip_address)

        return ip_address
