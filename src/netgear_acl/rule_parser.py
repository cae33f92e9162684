#!/usr/bin/env python3
"""
Parser for the device rule rows embedded in the access control page.

Each row carries one device as a run of tags such as
``<SPAN name="rule_mac">AA:BB:CC:DD:EE:FF</SPAN>``. Only these fragments are
parsed; the rest of the page is left to the form parser.
"""

import html
import logging
import re
from typing import Dict, Iterable, List

log = logging.getLogger(__name__)

RULE_PREFIX = "rule_"

_RULE_TAG = re.compile(
    r"<span\b[^>]*?\bname\s*=\s*[\"']?rule_(?P<prop>\w+)[\"']?[^>]*>(?P<value>.*?)</span\s*>",
    re.IGNORECASE | re.DOTALL,
)
_ROW_START = re.compile(r"<tr\b", re.IGNORECASE)
_TABLE_END = re.compile(r"</table\s*>", re.IGNORECASE)


def truncate(text: str, length: int = 25) -> str:
    """Shorten text for log messages, appending an ellipsis when cut."""
    text = text or ""
    if len(text) <= length:
        return text
    return text[:length] + "..."


def extract_rule_fragments(page_html: str) -> List[str]:
    """
    Split a page into table-row fragments that mention a rule property.

    Rows are cut at the next row start or table end, so rows missing their
    closing tag are still separated.

    Args:
        page_html: Full HTML of the access control page

    Returns:
        Row fragments in page order
    """
    fragments = []
    pieces = _ROW_START.split(page_html or "")
    for piece in pieces[1:]:
        piece = _TABLE_END.split(piece, 1)[0]
        if RULE_PREFIX in piece.lower():
            fragments.append("<tr" + piece)
    return fragments


class RuleHtmlParser:
    """Extracts rule property/value pairs from rule-row fragments."""

    def __init__(self, excerpt_length: int = 25):
        """
        Args:
            excerpt_length: Characters of an unparseable fragment quoted in the log
        """
        self.excerpt_length = excerpt_length

    def parse(self, fragment: str) -> Dict[str, str]:
        """
        Parse one rule row.

        Args:
            fragment: HTML of a single rule row

        Returns:
            Property name (without the rule_ prefix) to value, in tag order.
            Empty if the fragment holds no rule tags.
        """
        properties: Dict[str, str] = {}
        for match in _RULE_TAG.finditer(fragment or ""):
            prop = match.group("prop").lower()
            # Some firmware emits rule_device_name twice; the first one is correct.
            if prop in properties:
                continue
            properties[prop] = html.unescape(match.group("value")).strip()

        if not properties:
            log.warning(
                f"No rule properties found in fragment: "
                f"{truncate((fragment or '').strip(), self.excerpt_length)}"
            )
        return properties

    def parse_all(self, fragments: Iterable[str]) -> List[Dict[str, str]]:
        """Parse each fragment independently, preserving order."""
        return [self.parse(fragment) for fragment in fragments]
