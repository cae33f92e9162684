#!/usr/bin/env python3
"""
Encoder for the router's bulk rule-settings string.

The access control page submits the allow/block state of every connected
device in a single positional string:

    rule_settings := count ":" { mac ":" token ":" }
    token         := "1"    (Allowed)
                   | "0"    (Blocked)

``count`` is the number of (mac, token) pairs that follow. MACs are sent as
the router listed them.
"""

from typing import Iterable, Tuple

from .exceptions import InvalidAccessError
from .models import AccessControl

_TOKENS = {
    AccessControl.ALLOWED: "1",
    AccessControl.BLOCKED: "0",
}


def access_token(access: AccessControl) -> str:
    """Encode one access value.

    Raises:
        InvalidAccessError: If access is neither Allowed nor Blocked
    """
    try:
        return _TOKENS[access]
    except KeyError:
        raise InvalidAccessError(f"Access must be Allowed or Blocked, got {access!r}")


def encode_rule_settings(entries: Iterable[Tuple[str, AccessControl]]) -> str:
    """Encode (mac, access) pairs in order."""
    pairs = [(mac, access_token(access)) for mac, access in entries]
    return f"{len(pairs)}:" + "".join(f"{mac}:{token}:" for mac, token in pairs)
