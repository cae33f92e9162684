#!/usr/bin/env python3
"""
Validation of device values before they are sent to the router.
Rejections are logged and reported as None; nothing here raises.
"""

import logging
from typing import Optional

from .exceptions import InvalidMacAddressError
from .models import UNKNOWN_NAME, Device, MacAddress

log = logging.getLogger(__name__)


def clean_mac(device: Device) -> Optional[MacAddress]:
    """
    Validate the device MAC for use in an outbound request.

    Args:
        device: Device whose mac_address is checked

    Returns:
        Canonical MacAddress, or None if the MAC is rejected
    """
    try:
        return MacAddress.parse(device.mac_address)
    except InvalidMacAddressError as e:
        log.warning(f"Invalid MAC address {device.mac_address!r}: {e}")
        return None


def _is_printable_ascii(text: str) -> bool:
    return all(0x20 <= ord(ch) <= 0x7E for ch in text)


def clean_name(device: Device) -> Optional[str]:
    """
    Pick the name to register a device under.

    The user-assigned name wins unless it is blank or the unknown sentinel,
    in which case the router-detected name is used.

    Returns:
        Stripped name, or None if it is blank or not printable ASCII
    """
    name = device.name
    if not name or not name.strip() or name.strip() == UNKNOWN_NAME:
        name = device.detected_name

    if not name or not name.strip():
        log.warning(f"No usable name for device {device.mac_address}")
        return None
    if not _is_printable_ascii(name):
        log.warning(f"Device name {name!r} contains characters outside printable ASCII")
        return None
    return name.strip()
