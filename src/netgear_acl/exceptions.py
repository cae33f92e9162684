#!/usr/bin/env python3
"""
Exception hierarchy for Netgear router access-control operations.
Separates fatal caller errors from contract violations.
"""


class RouterError(Exception):
    """Base exception for all router client errors."""
    pass


class NotAuthenticatedError(RouterError):
    """No router credentials are configured."""
    pass


class RouterConnectionError(RouterError):
    """Network connectivity issues (connection refused, DNS failures, timeouts)."""

    def __init__(self, message: str, uri: str = None):
        """
        Initialize connection error with context.

        Args:
            message: Error message
            uri: Request URI that failed
        """
        super().__init__(message)
        self.uri = uri


class KnownDeviceImportError(RouterError):
    """Known-device file is missing, unreadable or has no usable rows."""
    pass


class InvalidAccessError(RouterError, ValueError):
    """An access value outside Allowed/Blocked was passed to a payload builder."""
    pass


class UnsupportedArityError(RouterError):
    """Several devices were passed to an operation that accepts exactly one."""

    def __init__(self, operation: str, count: int):
        super().__init__(
            f"{operation} supports exactly one device per call, got {count}"
        )
        self.operation = operation
        self.count = count


class InvalidMacAddressError(ValueError):
    """A MAC address failed validation."""
    pass
