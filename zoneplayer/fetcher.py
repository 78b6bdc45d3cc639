"""Retrieval of the device description, optionally with service definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .client import ZpClient
    from .description import DeviceDescription

_LOGGER = logging.getLogger(__name__)


async def fetch_description(client: ZpClient) -> DeviceDescription:
    """Fetches the device description in a single round trip."""
    return await client.device_description()


async def enrich(client: ZpClient, description: DeviceDescription) -> None:
    """Attaches the service control point definition to every service.

    Devices are visited depth-first, starting with the root device; the
    services of a device are fetched in listed order, one at a time. The first
    failure aborts the whole operation.
    """
    count = 0
    for device in description.devices():
        for service in device.services:
            service.scpd = await client.service_definition(service.scpd_url)
            count += 1
    _LOGGER.debug("Fetched %d service control point definitions", count)
