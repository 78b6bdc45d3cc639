"""A python client and command line tool for inspecting Sonos ZonePlayers and
monitoring their events."""

__version__ = "1.0.0"

# pylint: disable=wrong-import-position
from . import const
from .client import ZpClient
from .description import Device, DeviceDescription, Service
from .dispatcher import Dispatcher
from .error import ZonePlayerError
from .listener import ZpListener

__all__ = [
    "const",
    "Device",
    "DeviceDescription",
    "Dispatcher",
    "Service",
    "ZonePlayerError",
    "ZpClient",
    "ZpListener",
]
