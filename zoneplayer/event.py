"""Events pushed by a ZonePlayer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .description import element_value, local_name, parse_xml, text_value
from .error import ProtocolError

LAST_CHANGE = "LastChange"


@dataclass(frozen=True)
class EventRecord:
    """Event received from a service of a device."""

    device: str
    service: str
    payload: Any


def parse_last_change(data: str) -> dict[str, Any]:
    """Decodes a LastChange document into its state variables.

    Only the first InstanceID is decoded. Variables qualified by a channel
    attribute are collected per channel.
    """
    root = parse_xml(data)
    instances = list(root)
    if not instances:
        return {}
    result: dict[str, Any] = {}
    for variable in instances[0]:
        key = local_name(variable)
        value = text_value(variable.get("val"))
        channel = variable.get("channel")
        if channel is None:
            result[key] = value
        else:
            channels = result.setdefault(key, {})
            if isinstance(channels, dict):
                channels[channel] = value
    return result


def parse_notify(body: bytes | str) -> dict[str, Any]:
    """Decodes the body of a NOTIFY request into a payload."""
    root = parse_xml(body)
    if local_name(root) != "propertyset":
        raise ProtocolError(f"Unexpected event document <{local_name(root)}>")
    payload: dict[str, Any] = {}
    for prop in root:
        for variable in prop:
            key = local_name(variable)
            if key == LAST_CHANGE and variable.text and variable.text.strip():
                payload[key] = parse_last_change(variable.text.strip())
            else:
                payload[key] = element_value(variable)
    return payload
