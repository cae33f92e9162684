#!/usr/bin/env python3
"""
Builds Device records from parsed rule properties.
"""

import logging
from enum import Enum
from typing import Iterable, List, Mapping, Optional

from .models import AccessControl, ConnectionState, Device

log = logging.getLogger(__name__)


class RuleShape(Enum):
    """The three rule row layouts the access control page uses."""
    ACTIVE = "active"          # connected now: mac + status
    WHITELIST = "whitelist"    # allowed, not connected: mac_white
    BLACKLIST = "blacklist"    # blocked, not connected: mac_black
    UNRECOGNIZED = "unrecognized"


def classify_rule(props: Mapping[str, str]) -> RuleShape:
    """Decide which rule layout a property set follows."""
    if "mac" in props and "status" in props:
        return RuleShape.ACTIVE
    if "mac_black" in props:
        return RuleShape.BLACKLIST
    if "mac_white" in props:
        return RuleShape.WHITELIST
    return RuleShape.UNRECOGNIZED


def connection_hint_for(shape: RuleShape) -> Optional[ConnectionState]:
    """Connection state implied by the table a rule shape lives in."""
    if shape is RuleShape.ACTIVE:
        return ConnectionState.ONLINE
    if shape in (RuleShape.WHITELIST, RuleShape.BLACKLIST):
        return ConnectionState.OFFLINE
    return None


def _parse_status(status: str) -> AccessControl:
    # Exact, case-sensitive match on the router's wording.
    for access in (AccessControl.ALLOWED, AccessControl.BLOCKED):
        if status == access.value:
            return access
    log.debug(f"Unrecognized rule status: {status!r}")
    return AccessControl.UNKNOWN


class DeviceFactory:
    """Maps rule property sets onto Device records."""

    @staticmethod
    def from_properties(props: Mapping[str, str],
                        connection_hint: Optional[ConnectionState] = None) -> Device:
        """
        Build a device from one rule row.

        Args:
            props: Parsed rule properties
            connection_hint: Connection state of the table the row came from

        Returns:
            Device; unrecognized keys are ignored
        """
        device = Device(detected_name=props.get("device_name", ""))

        shape = classify_rule(props)
        if shape is RuleShape.ACTIVE:
            device.mac_address = props["mac"]
            device.access_control = _parse_status(props["status"])
        elif shape is RuleShape.BLACKLIST:
            device.mac_address = props["mac_black"]
            device.access_control = AccessControl.BLOCKED
        elif shape is RuleShape.WHITELIST:
            device.mac_address = props["mac_white"]
            device.access_control = AccessControl.ALLOWED
        else:
            log.debug(f"Rule has no MAC property: {sorted(props)}")

        if connection_hint is not None:
            device.connection = connection_hint
        return device

    @classmethod
    def from_property_sets(cls, property_sets: Iterable[Mapping[str, str]],
                           connection_hint: Optional[ConnectionState] = None) -> List[Device]:
        """Build one device per property set, preserving order."""
        return [cls.from_properties(props, connection_hint) for props in property_sets]
