#!/usr/bin/env python3
"""
Device mutations: block, unblock, add, remove and the global access control toggle.

The router only lets a connected device change access through the bulk rule
settings of the connected-devices table. A device that is not connected has
to be removed from its list and added to the other one.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Union

from .api_cache import DEVICES_KEY, TimedCache
from .auth import ConfigCredentialProvider, CredentialProvider
from .config import RouterConfig
from .endpoint_builder import RouterEndpointBuilder
from .exceptions import UnsupportedArityError
from .models import (
    AccessControl,
    AccessControlState,
    ConnectionState,
    Device,
    KnownDevice,
    mac_key,
)
from .page_client import RouterPageClient
from .rule_settings import access_token
from .transport import HttpClient, RequestsHttpClient
from .validation import clean_mac, clean_name

log = logging.getLogger(__name__)

DeviceArg = Union[Device, Sequence[Device]]


def _single_device(devices: DeviceArg, operation: str) -> Device:
    if isinstance(devices, Device):
        return devices
    devices = list(devices)
    if len(devices) != 1:
        raise UnsupportedArityError(operation, len(devices))
    return devices[0]


class DeviceMutationOrchestrator:
    """
    Decides which postbacks a device change needs and keeps the cache coherent.
    """

    def __init__(self, page_client: RouterPageClient):
        """
        Args:
            page_client: Client for the access control page
        """
        self.page_client = page_client

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_devices(self, connection: Optional[ConnectionState] = None,
                     force_refresh: bool = False) -> List[Device]:
        """
        Devices known to the router, optionally filtered by connection state.
        """
        devices = self.page_client.get_devices(force_refresh)
        if connection is None:
            return list(devices)
        return [d for d in devices if d.connection is connection]

    def find_device(self, mac: str) -> Optional[Device]:
        """Look a device up by MAC in the cached device list."""
        key = mac_key(mac)
        return next((d for d in self.page_client.get_devices() if mac_key(d.mac_address) == key), None)

    def get_access_control_state(self) -> AccessControlState:
        return self.page_client.get_access_control_state()

    # ------------------------------------------------------------------
    # Block / unblock
    # ------------------------------------------------------------------

    def block(self, devices: DeviceArg) -> Optional[Device]:
        """
        Block one device.

        Args:
            devices: The device, or a sequence holding exactly one device

        Returns:
            The device's state after the change, or None if it was not found

        Raises:
            UnsupportedArityError: If a sequence with any other length is given
        """
        return self._set_access(_single_device(devices, "block"), AccessControl.BLOCKED)

    def unblock(self, devices: DeviceArg) -> Optional[Device]:
        """Allow one device. See block."""
        return self._set_access(_single_device(devices, "unblock"), AccessControl.ALLOWED)

    def _set_access(self, device: Device, access: AccessControl) -> Optional[Device]:
        current = self.find_device(device.mac_address)
        if current is None:
            log.warning(f"Device {device.mac_address} not found on router")
            return None

        if current.access_control is access:
            log.info(f"Device {current.display_name} ({current.mac_address}) is already {access.value}")
            return current

        return self.update_connected_device(current, access)

    def update_connected_device(self, device: Device, new_access: AccessControl) -> Optional[Device]:
        """
        Change a device's access along the path its connection state requires.

        Returns:
            The device as the router reports it afterwards, or None
        """
        if device.connection is ConnectionState.ONLINE:
            self.update_online_device(device, new_access)
        elif device.connection is ConnectionState.OFFLINE:
            self.update_offline_device(device, new_access)
        else:
            log.warning(f"Cannot update {device.mac_address}: connection state is {device.connection.value}")
            return None

        self.page_client.cache.invalidate(DEVICES_KEY)
        return self.find_device(device.mac_address)

    def update_online_device(self, device: Device, new_access: AccessControl) -> None:
        fields = self.page_client.compose_update_fields(device, new_access)
        if fields is None:
            log.warning(f"Could not build update for {device.mac_address}; nothing sent")
            return
        self.page_client.postback(fields)

    def update_offline_device(self, device: Device, new_access: AccessControl) -> None:
        """
        Move an offline device to the other list: remove it, then add it back.

        Nothing is posted unless the device would be accepted by the add page,
        so a rejected MAC or name never leaves it on neither list.

        Raises:
            InvalidAccessError: If new_access is neither Allowed nor Blocked
        """
        access_token(new_access)
        moved = replace(device, access_control=new_access)
        if clean_mac(moved) is None or clean_name(moved) is None:
            log.warning(f"Device {device.mac_address} cannot be re-added; leaving it unchanged")
            return

        # Remove first: the router keeps a MAC in only one list.
        self.remove_device(device)
        self.add_device(device, new_access)

    # ------------------------------------------------------------------
    # Add / remove
    # ------------------------------------------------------------------

    def remove_device(self, device: Device) -> None:
        """
        Delete a device that is not connected from its allow or block list.
        """
        if device.connection is not ConnectionState.OFFLINE:
            log.warning(
                f"Only offline devices can be removed; {device.mac_address} is {device.connection.value}"
            )
            return

        self.page_client.postback(self.page_client.compose_remove_fields(device))

    def add_device(self, device: Device, access: AccessControl) -> None:
        """
        Add a device to the allow or block list.

        Args:
            device: Device to add (its access_control is set to access)
            access: List to add it to
        """
        device.access_control = access
        add_form = self.page_client.fetch_add_page()
        fields = self.page_client.compose_add_fields(device, add_form)
        if fields is None:
            log.warning(f"Device {device.mac_address} not added")
            return
        self.page_client.postback(fields, add_form)

    # ------------------------------------------------------------------
    # Global access control
    # ------------------------------------------------------------------

    def enable_access_control(self, new_device_access: Optional[AccessControl] = None) -> None:
        """
        Turn access control on.

        Args:
            new_device_access: Optional policy for devices the router has not seen
        """
        self.page_client.postback(self.page_client.compose_enable_fields(new_device_access))
        self.page_client.invalidate()

    def disable_access_control(self) -> None:
        """Turn access control off."""
        self.page_client.postback(self.page_client.compose_disable_fields())
        self.page_client.invalidate()

    def close(self) -> None:
        """Release the router connection."""
        self.page_client.close()


def build_orchestrator(config: RouterConfig,
                       known_devices: Optional[Sequence[KnownDevice]] = None,
                       credential_provider: Optional[CredentialProvider] = None,
                       http_client: Optional[HttpClient] = None,
                       cache: Optional[TimedCache] = None) -> DeviceMutationOrchestrator:
    """
    Wire up a page client and orchestrator from configuration.

    Args:
        config: Router settings
        known_devices: User-assigned names to merge into device lists
        credential_provider: Defaults to the credentials in config
        http_client: Defaults to a requests-based client built from config
        cache: Defaults to a fresh TimedCache
    """
    page_client = RouterPageClient(
        endpoint_builder=RouterEndpointBuilder(config.base_url),
        http_client=http_client or RequestsHttpClient(
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
            max_retries=config.max_retries,
        ),
        credential_provider=credential_provider or ConfigCredentialProvider(config),
        cache=cache,
        known_devices=known_devices,
        cache_ttl_minutes=config.cache_ttl_minutes,
    )
    return DeviceMutationOrchestrator(page_client)
