#!/usr/bin/env python3
"""
Endpoint builder for the router admin pages.
Page paths are fixed by the firmware; only the origin is configurable.
"""

from urllib.parse import urljoin

DEVICE_LIST_PAGE = "DEV_control.htm"
ADD_DEVICE_PAGE = "access_control_add.htm"


class RouterEndpointBuilder:
    """
    Centralized URL construction for the router admin interface.
    """

    def __init__(self, base_url: str):
        """
        Initialize endpoint builder.

        Args:
            base_url: Router origin (e.g., http://192.168.1.1)
        """
        self.base_url = base_url.rstrip("/")

    def device_list(self) -> str:
        """Access control page with the device rule tables."""
        return f"{self.base_url}/{DEVICE_LIST_PAGE}"

    def add_device(self) -> str:
        """Page holding the add-device form."""
        return f"{self.base_url}/{ADD_DEVICE_PAGE}"

    def resolve(self, action: str) -> str:
        """Resolve a form action (usually relative) against the router origin."""
        return urljoin(self.base_url + "/", action or "")
