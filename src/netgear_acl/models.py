#!/usr/bin/env python3
"""
Models for the Netgear access-control client.
Contains the MAC address value type, device records and page snapshots.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import InvalidMacAddressError

UNKNOWN_NAME = "??"

_HEX12 = re.compile(r"^[0-9A-F]{12}$")


class ConnectionState(Enum):
    """Which router table a device was read from."""
    UNDETECTED = "Undetected"
    ONLINE = "Online"
    OFFLINE = "Offline"


class AccessControl(Enum):
    """Per-device access, using the router's own vocabulary."""
    UNKNOWN = "Unknown"
    BLOCKED = "Blocked"
    ALLOWED = "Allowed"


class AccessControlSetting(Enum):
    """Router-wide access control toggle."""
    UNKNOWN = "Unknown"
    ENABLED = "Enabled"
    DISABLED = "Disabled"


class NewDeviceAccess(Enum):
    """What the router does with devices it has never seen."""
    UNKNOWN = "Unknown"
    BLOCKED = "Blocked"
    ALLOWED = "Allowed"
    NOT_APPLICABLE = "NotApplicable"


@dataclass(frozen=True)
class MacAddress:
    """Validated unicast MAC address in canonical XX:XX:XX:XX:XX:XX form."""

    value: str

    @classmethod
    def parse(cls, raw: str) -> "MacAddress":
        """
        Parse and validate a MAC address.

        Args:
            raw: MAC address with ':' or '-' delimiters, or none at all

        Returns:
            MacAddress in canonical form

        Raises:
            InvalidMacAddressError: If the address is malformed, all-zero,
                all-F or multicast
        """
        if raw is None:
            raise InvalidMacAddressError("MAC address is missing")

        digits = mac_key(raw)
        if len(digits) != 12:
            raise InvalidMacAddressError(f"MAC address must have 12 hex digits: {raw!r}")
        if not _HEX12.match(digits):
            raise InvalidMacAddressError(f"MAC address contains invalid characters: {raw!r}")
        if set(digits) in ({"0"}, {"F"}):
            raise InvalidMacAddressError(f"MAC address is a reserved all-0/all-F value: {raw!r}")
        if int(digits[:2], 16) & 1:
            raise InvalidMacAddressError(f"MAC address is multicast: {raw!r}")

        return cls(_colonize(digits))

    def __str__(self) -> str:
        return self.value


def _colonize(digits: str) -> str:
    return ":".join(digits[i:i + 2] for i in range(0, 12, 2))


def mac_key(mac: Optional[str]) -> str:
    """Loose comparison key for MACs as reported by the router."""
    return (mac or "").strip().replace(":", "").replace("-", "").upper()


def normalize_mac(mac: Optional[str]) -> Optional[str]:
    """
    Format-only normalization to XX:XX:XX:XX:XX:XX.

    Unlike MacAddress.parse this accepts any 12 hex digits, so it is safe for
    matching addresses the router itself reported.

    Returns:
        Canonical text, or None if the value is not 12 hex digits
    """
    digits = mac_key(mac)
    if not _HEX12.match(digits):
        return None
    return _colonize(digits)


@dataclass
class Device:
    """One router-managed network endpoint, rebuilt on every page parse."""

    mac_address: str = ""
    detected_name: str = ""
    name: Optional[str] = None
    connection: ConnectionState = ConnectionState.UNDETECTED
    access_control: AccessControl = AccessControl.UNKNOWN

    @property
    def display_name(self) -> str:
        """Get display name, falling back to detected name then MAC."""
        if self.name and self.name != UNKNOWN_NAME:
            return self.name
        return self.detected_name or self.mac_address

    def same_device(self, other: "Device") -> bool:
        """Devices are identified by MAC only."""
        return mac_key(self.mac_address) == mac_key(other.mac_address)


@dataclass(frozen=True)
class KnownDevice:
    """User-assigned name for a MAC address."""
    name: str
    mac: str


@dataclass(frozen=True)
class AccessControlState:
    """Snapshot of the router's global access-control settings."""
    access_control: AccessControlSetting = AccessControlSetting.UNKNOWN
    new_device_access: NewDeviceAccess = NewDeviceAccess.UNKNOWN


@dataclass
class PageForm:
    """First form of an admin page: its fields, resolved action and session."""
    fields: Dict[str, str] = field(default_factory=dict)
    action: str = ""
    session: Any = None


@dataclass
class PageSnapshot:
    """Fetched device-list page with the form snapshot every postback needs."""
    html: str
    form_fields: Dict[str, str]
    form_action: str
    session: Any = None
    status: int = 200

    def as_form(self) -> PageForm:
        return PageForm(fields=self.form_fields, action=self.form_action, session=self.session)
