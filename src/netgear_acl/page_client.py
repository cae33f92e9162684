#!/usr/bin/env python3
"""
Page client for the router's access control admin page.

Every change on this router is a postback of the admin page's own form, so the
client keeps a short-lived copy of the fetched page (session, form action and
hidden fields) and builds payloads the way the page's JavaScript would.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from .api_cache import DEFAULT_TTL_MINUTES, DEVICES_KEY, PAGE_KEY, TimedCache
from .auth import CredentialProvider
from .device_factory import DeviceFactory, classify_rule, connection_hint_for
from .endpoint_builder import RouterEndpointBuilder
from .exceptions import InvalidAccessError
from .html_parser import ALLOW_ALL, BLOCK_ALL, ENABLE_CHECKBOX, NEW_DEVICE_RADIO, RouterHtmlParser
from .known_devices import merge_known_devices
from .models import (
    AccessControl,
    AccessControlState,
    ConnectionState,
    Device,
    KnownDevice,
    PageForm,
    PageSnapshot,
)
from .rule_parser import RuleHtmlParser, extract_rule_fragments
from .rule_settings import encode_rule_settings
from .transport import HttpClient
from .validation import clean_mac, clean_name

log = logging.getLogger(__name__)

# Form fields understood by the access control page
ENABLE_ACL = "enable_acl"
ACCESS_ALL = "access_all"
RULE_SETTINGS = "rule_settings"
RULE_STATUS_ORG = "rule_status_org"
ALLOW = "allow"
BLOCK = "block"
DELETE_WHITE_LISTS = "delete_white_lists"
DELETE_BLACK_LISTS = "delete_black_lists"
DELETE_WHITE = "delete_white"
DELETE_BLACK = "delete_black"

# Form fields of the add-device page
MAC_ADDR = "mac_addr"
DEV_NAME = "dev_name"
ACTION = "action"
ADD_TYPE = "access_control_add_type"

_NEW_DEVICE_TOKENS = {
    AccessControl.ALLOWED: ALLOW_ALL,
    AccessControl.BLOCKED: BLOCK_ALL,
}
_ADD_TYPES = {
    AccessControl.ALLOWED: "allowed_list",
    AccessControl.BLOCKED: "blocked_list",
}


def _require_access(access: AccessControl, table: Mapping[AccessControl, str]) -> str:
    try:
        return table[access]
    except KeyError:
        raise InvalidAccessError(f"Access must be Allowed or Blocked, got {access!r}")


class RouterPageClient:
    """
    Fetches, caches and posts back the router's access control page.
    """

    def __init__(self, endpoint_builder: RouterEndpointBuilder,
                 http_client: HttpClient,
                 credential_provider: CredentialProvider,
                 cache: Optional[TimedCache] = None,
                 known_devices: Optional[Sequence[KnownDevice]] = None,
                 cache_ttl_minutes: float = DEFAULT_TTL_MINUTES):
        """
        Initialize RouterPageClient.

        Args:
            endpoint_builder: RouterEndpointBuilder instance
            http_client: Transport used for page fetches and postbacks
            credential_provider: Supplies credentials for each page fetch
            cache: Cache for the page and the device list (a new one if omitted)
            known_devices: User-assigned device names merged into device lists
            cache_ttl_minutes: Lifetime of cached pages and device lists
        """
        self.endpoint_builder = endpoint_builder
        self.http_client = http_client
        self.credential_provider = credential_provider
        self.cache = cache if cache is not None else TimedCache()
        self.known_devices = list(known_devices) if known_devices else []
        self.cache_ttl_minutes = cache_ttl_minutes
        self.rule_parser = RuleHtmlParser()

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def _get(self, uri: str):
        response = self.http_client.get(uri, self.credential_provider.get())
        if response.status == 200:
            log.info(f"Fetched {uri}")
        else:
            log.warning(f"Fetching {uri} returned status {response.status}")
        return response

    def _load_page(self) -> PageSnapshot:
        uri = self.endpoint_builder.device_list()
        response = self._get(uri)
        form = RouterHtmlParser(response.body).extract_form()
        return PageSnapshot(
            html=response.body,
            form_fields=form["fields"],
            form_action=self.endpoint_builder.resolve(form["action"] or uri),
            session=response.session,
            status=response.status,
        )

    def fetch_page(self) -> PageSnapshot:
        """
        Get the access control page, from cache when still fresh.

        Returns:
            PageSnapshot (best effort when the router answered with an error status)
        """
        return self.cache.get_or_create(PAGE_KEY, self._load_page, self.cache_ttl_minutes)

    def fetch_add_page(self) -> PageForm:
        """
        Get the add-device page's form. Not cached.

        Returns:
            PageForm with fields, resolved action and the fetch session
        """
        uri = self.endpoint_builder.add_device()
        response = self._get(uri)
        form = RouterHtmlParser(response.body).extract_form()
        return PageForm(
            fields=form["fields"],
            action=self.endpoint_builder.resolve(form["action"] or uri),
            session=response.session,
        )

    def invalidate(self) -> None:
        """Drop the cached page and everything parsed from it."""
        self.cache.invalidate(PAGE_KEY)

    def close(self) -> None:
        """Drop cached pages and release the transport's connections."""
        self.invalidate()
        self.http_client.close()

    def _parse_devices(self) -> List[Device]:
        page = self.fetch_page()
        devices = []
        for props in self.rule_parser.parse_all(extract_rule_fragments(page.html)):
            if not props:
                continue
            shape = classify_rule(props)
            devices.append(DeviceFactory.from_properties(props, connection_hint_for(shape)))

        log.debug(f"Parsed {len(devices)} devices from access control page")
        return merge_known_devices(devices, self.known_devices)

    def get_devices(self, force_refresh: bool = False) -> List[Device]:
        """
        Get all devices the router lists, with known names merged in.

        Args:
            force_refresh: Refetch the page instead of using the cache

        Returns:
            Devices in page order
        """
        if force_refresh:
            self.invalidate()
        return self.cache.get_or_create(DEVICES_KEY, self._parse_devices, self.cache_ttl_minutes)

    def get_online_devices(self, force_refresh: bool = False) -> List[Device]:
        """Devices in the router's connected-now table."""
        return [d for d in self.get_devices(force_refresh)
                if d.connection is ConnectionState.ONLINE]

    def get_access_control_state(self) -> AccessControlState:
        """Read the router-wide access control settings from the cached page."""
        return RouterHtmlParser(self.fetch_page().html).extract_access_control_state()

    # ------------------------------------------------------------------
    # Posting
    # ------------------------------------------------------------------

    def postback(self, fields: Mapping[str, str], form: Optional[PageForm] = None) -> None:
        """
        Submit fields as the page's form would.

        Args:
            fields: Complete form payload
            form: Form to submit to; defaults to the cached access control page
        """
        target = form if form is not None else self.fetch_page().as_form()
        response = self.http_client.post(target.action, target.session, fields)

        if response.status == 200:
            log.info(f"Postback to {target.action} succeeded")
        else:
            log.warning(f"Postback to {target.action} failed with status {response.status}")

        # The form action and session of the page are spent once posted.
        self.invalidate()

    def _current_fields(self) -> Dict[str, str]:
        return dict(self.fetch_page().form_fields)

    def compose_enable_fields(self, new_device_access: Optional[AccessControl] = None) -> Dict[str, str]:
        """
        Payload that turns access control on.

        Args:
            new_device_access: Optional policy for devices the router has not seen

        Returns:
            Copy of the current form fields with the enable token and
            checkbox set, and the new-device token matching the radio
        """
        page = self.fetch_page()
        fields = dict(page.form_fields)
        fields[ENABLE_ACL] = ENABLE_ACL
        fields[ENABLE_CHECKBOX] = RouterHtmlParser(page.html).input_value(ENABLE_CHECKBOX)

        # The hidden token and the visible radio must agree.
        if new_device_access is not None:
            token = _require_access(new_device_access, _NEW_DEVICE_TOKENS)
            fields[ACCESS_ALL] = token
            fields[NEW_DEVICE_RADIO] = token
        elif NEW_DEVICE_RADIO in fields:
            fields[ACCESS_ALL] = fields[NEW_DEVICE_RADIO]
        return fields

    def compose_disable_fields(self) -> Dict[str, str]:
        """Payload that turns access control off: no enable token, checkbox unticked."""
        fields = self._current_fields()
        fields.pop(ENABLE_ACL, None)
        fields.pop(ENABLE_CHECKBOX, None)
        return fields

    def compose_rule_settings_value(self, target: Device, access: AccessControl) -> Optional[str]:
        """
        Encode the allow/block state of every connected device, with target
        switched to access.

        The online devices are read from a fresh fetch, not from the page
        snapshot the other fields are copied from.

        Args:
            target: Device to change, matched by MAC
            access: New access for target

        Returns:
            Encoded rule settings, or None if the target is not online or
            another online device has no known access state

        Raises:
            InvalidAccessError: If access is neither Allowed nor Blocked
        """
        _require_access(access, _ADD_TYPES)

        online = self.get_online_devices(force_refresh=True)
        entries = []
        found = False
        for device in online:
            if device.same_device(target):
                entries.append((device.mac_address, access))
                found = True
            elif device.access_control is AccessControl.UNKNOWN:
                log.warning(f"Online device {device.mac_address} has unknown access state")
                return None
            else:
                entries.append((device.mac_address, device.access_control))

        if not found:
            log.warning(f"Device {target.mac_address} is not in the online device list")
            return None
        return encode_rule_settings(entries)

    def compose_update_fields(self, device: Device, access: AccessControl) -> Optional[Dict[str, str]]:
        """
        Payload that sets the access of an online device.

        Returns:
            Form fields, or None if the rule settings could not be built
        """
        rule_settings = self.compose_rule_settings_value(device, access)
        if rule_settings is None:
            return None

        fields = self._current_fields()
        fields[RULE_SETTINGS] = rule_settings
        # Holds one value per table row; a flat form cannot carry it.
        fields.pop(RULE_STATUS_ORG, None)
        if access is AccessControl.ALLOWED:
            fields[ALLOW] = "Allow"
        else:
            fields[BLOCK] = "Block"
        return fields

    def compose_remove_fields(self, device: Device) -> Dict[str, str]:
        """
        Payload that deletes an offline device from its allow or block list.

        Raises:
            InvalidAccessError: If the device's access is unknown
        """
        fields = self._current_fields()
        value = f"1:{device.mac_address}:"
        if device.access_control is AccessControl.ALLOWED:
            fields[DELETE_WHITE_LISTS] = value
            fields[DELETE_WHITE] = "Remove"
        elif device.access_control is AccessControl.BLOCKED:
            fields[DELETE_BLACK_LISTS] = value
            fields[DELETE_BLACK] = "Remove"
        else:
            raise InvalidAccessError(
                f"Cannot remove {device.mac_address}: access is {device.access_control.value}"
            )
        return fields

    def compose_add_fields(self, device: Device, add_form: PageForm) -> Optional[Dict[str, str]]:
        """
        Payload for the add-device page.

        Args:
            device: Device to add; its access_control selects the list
            add_form: Form fetched from the add-device page

        Returns:
            Form fields, or None if the MAC or name is rejected
        """
        mac = clean_mac(device)
        name = clean_name(device)
        if mac is None or name is None:
            return None

        fields = dict(add_form.fields)
        fields[MAC_ADDR] = str(mac)
        fields[DEV_NAME] = name
        fields[ACTION] = "Apply"
        fields[ADD_TYPE] = _require_access(device.access_control, _ADD_TYPES)
        return fields
