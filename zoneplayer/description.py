"""Model of the device description of a ZonePlayer."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from .error import ProtocolError

LIST_SUFFIXES = ("List", "Table")

_INT_PATTERN = re.compile(r"-?(0|[1-9][0-9]*)")


def local_name(element: ET.Element) -> str:
    """Returns the tag of element without its namespace."""
    return element.tag.rsplit("}", 1)[-1]


def text_value(text: str | None) -> str | int:
    """Returns element text, as int when it holds a plain integer."""
    text = (text or "").strip()
    if _INT_PATTERN.fullmatch(text):
        return int(text)
    return text


def element_value(element: ET.Element) -> Any:
    """Converts an XML element into a structured value.

    Leaves become text (or int). Elements whose tag ends in one of
    LIST_SUFFIXES become a list of their children. Other elements become a
    dict, where a repeated tag collects its values into a list. Attributes are
    kept as keys of the dict; a leaf with attributes keeps its text as "value".
    """
    children = list(element)
    attributes = {
        key.rsplit("}", 1)[-1]: text_value(value)
        for key, value in element.attrib.items()
    }
    if not children:
        if not attributes:
            return text_value(element.text)
        if element.text and element.text.strip():
            attributes["value"] = text_value(element.text)
        return attributes
    if local_name(element).endswith(LIST_SUFFIXES):
        return [element_value(child) for child in children]
    result: dict[str, Any] = attributes
    for child in children:
        key = local_name(child)
        value = element_value(child)
        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]
    return result


def parse_xml(data: bytes | str) -> ET.Element:
    """Parses an XML document, raising ProtocolError when not well-formed."""
    try:
        return ET.fromstring(data)
    except ET.ParseError as err:
        raise ProtocolError(f"Invalid XML: {err}") from err


@dataclass
class Service:
    """Service descriptor of a device."""

    properties: dict[str, Any]
    scpd: Any = None

    @property
    def service_type(self) -> str:
        """Returns the UPnP service type."""
        return self.properties.get("serviceType", "")

    @property
    def service_id(self) -> str:
        """Returns the short service id, e.g. AVTransport."""
        return str(self.properties.get("serviceId", "")).rsplit(":", 1)[-1]

    @property
    def scpd_url(self) -> str:
        """Returns the URL of the service control point definition."""
        return self.properties.get("SCPDURL", "")

    @property
    def event_sub_url(self) -> str:
        """Returns the URL for event subscriptions."""
        return self.properties.get("eventSubURL", "")

    def as_dict(self) -> dict[str, Any]:
        """Returns service as a structured value."""
        result = dict(self.properties)
        if self.scpd is not None:
            result["scpd"] = self.scpd
        return result


@dataclass
class Device:
    """Device node, holding its services and embedded devices."""

    properties: dict[str, Any]
    services: list[Service] = field(default_factory=list)
    devices: list[Device] = field(default_factory=list)

    @property
    def device_type(self) -> str:
        """Returns the UPnP device type."""
        return self.properties.get("deviceType", "")

    @property
    def friendly_name(self) -> str:
        """Returns the friendly name of the device."""
        return self.properties.get("friendlyName", "")

    @property
    def udn(self) -> str:
        """Returns unique device name, e.g. uuid:RINCON_000E58000000001400."""
        return self.properties.get("UDN", "")

    @property
    def device_id(self) -> str:
        """Returns the UDN without its uuid: prefix."""
        return self.udn.removeprefix("uuid:")

    @classmethod
    def from_element(cls, element: ET.Element) -> Device:
        """Builds a device, and its embedded devices, from a device element."""
        properties: dict[str, Any] = {}
        services: list[Service] = []
        devices: list[Device] = []
        for child in element:
            tag = local_name(child)
            if tag == "serviceList":
                services = [Service(element_value(s)) for s in child]
            elif tag == "deviceList":
                devices = [cls.from_element(d) for d in child]
            else:
                properties[tag] = element_value(child)
        return cls(properties, services, devices)

    def as_dict(self) -> dict[str, Any]:
        """Returns device tree as a structured value."""
        result = dict(self.properties)
        result["serviceList"] = [s.as_dict() for s in self.services]
        if self.devices:
            result["deviceList"] = [d.as_dict() for d in self.devices]
        return result


@dataclass
class DeviceDescription:
    """Device description: the root device and the document's other properties."""

    device: Device
    properties: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_xml(cls, data: bytes | str) -> DeviceDescription:
        """Parses a device description document."""
        root = parse_xml(data)
        device: Device | None = None
        properties: dict[str, Any] = {}
        for child in root:
            if local_name(child) == "device":
                device = Device.from_element(child)
            else:
                properties[local_name(child)] = element_value(child)
        if device is None:
            raise ProtocolError("Device description has no device element")
        return cls(device, properties)

    def devices(self) -> Iterator[Device]:
        """Yields the root device, then every embedded device depth-first."""
        stack = [self.device]
        while stack:
            device = stack.pop()
            yield device
            stack.extend(reversed(device.devices))

    def as_dict(self) -> dict[str, Any]:
        """Returns description as a structured value."""
        result = dict(self.properties)
        result["device"] = self.device.as_dict()
        return result
