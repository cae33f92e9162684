#!/usr/bin/env python3
"""
HTML parser for the router admin pages.
Reads the page's form (fields and action) and the global access control inputs.
Rule rows are handled separately by rule_parser.
"""

import logging
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

from .models import AccessControlSetting, AccessControlState, NewDeviceAccess

log = logging.getLogger(__name__)

ENABLE_CHECKBOX = "enable_access_control"
NEW_DEVICE_RADIO = "access_all_setting"

ALLOW_ALL = "allow_all"
BLOCK_ALL = "block_all"

# Buttons are only submitted when clicked; postbacks set them explicitly.
_BUTTON_TYPES = {"submit", "button", "image", "reset"}


class RouterHtmlParser:
    """Parser for router admin page HTML."""

    def __init__(self, html_content: str):
        """
        Initialize the parser with HTML content.

        Args:
            html_content: HTML content to parse
        """
        self.html_content = html_content or ""
        self.soup = BeautifulSoup(self.html_content, 'lxml')

    def extract_form(self) -> Dict[str, Any]:
        """
        Extract the fields a browser would submit from the page's first form.

        Returns:
            Dict with 'action' (raw, unresolved) and 'fields' (name -> value)
        """
        form = self.soup.find('form')
        if form is None:
            log.warning("No form found in page")
            return {"action": "", "fields": {}}

        fields: Dict[str, str] = {}
        for element in form.find_all(['input', 'select', 'textarea']):
            name = element.get('name')
            if not name or name in fields:
                continue

            if element.name == 'input':
                input_type = (element.get('type') or 'text').lower()
                if input_type in _BUTTON_TYPES:
                    continue
                if input_type in ('checkbox', 'radio'):
                    if element.has_attr('checked'):
                        fields[name] = element.get('value', 'on')
                    continue
                fields[name] = element.get('value', '')
            elif element.name == 'select':
                option = element.find('option', selected=True) or element.find('option')
                if option is not None:
                    fields[name] = option.get('value', option.get_text(strip=True))
            else:
                fields[name] = element.get_text()

        return {"action": form.get('action', ''), "fields": fields}

    def input_value(self, name: str, default: str = "on") -> str:
        """Value the named checkbox or radio submits when ticked."""
        element = self._input(name)
        if element is None:
            return default
        return element.get('value', default)

    def _input(self, name: str, checked_only: bool = False):
        for element in self.soup.find_all('input', attrs={'name': name}):
            if not checked_only or element.has_attr('checked'):
                return element
        return None

    def extract_access_control_state(self) -> AccessControlState:
        """
        Read the global access control toggle and new-device policy.

        Returns:
            AccessControlState; parts that cannot be found are Unknown
        """
        checkbox = self._input(ENABLE_CHECKBOX)
        if checkbox is None:
            log.debug(f"No {ENABLE_CHECKBOX} input on page")
            return AccessControlState()

        if not checkbox.has_attr('checked'):
            return AccessControlState(
                access_control=AccessControlSetting.DISABLED,
                new_device_access=NewDeviceAccess.NOT_APPLICABLE,
            )

        return AccessControlState(
            access_control=AccessControlSetting.ENABLED,
            new_device_access=self._new_device_access(),
        )

    def _new_device_access(self) -> NewDeviceAccess:
        radio = self._input(NEW_DEVICE_RADIO, checked_only=True)
        value: Optional[str] = radio.get('value') if radio is not None else None
        if value == ALLOW_ALL:
            return NewDeviceAccess.ALLOWED
        if value == BLOCK_ALL:
            return NewDeviceAccess.BLOCKED
        return NewDeviceAccess.UNKNOWN
