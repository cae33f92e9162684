#!/usr/bin/env python3
"""
Netgear access control package.
Scrapes the router's access control page and drives it through form postbacks.
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .api_cache import TimedCache
from .config import RouterConfig
from .exceptions import (
    InvalidAccessError,
    KnownDeviceImportError,
    NotAuthenticatedError,
    RouterConnectionError,
    RouterError,
    UnsupportedArityError,
)
from .models import (
    AccessControl,
    AccessControlSetting,
    AccessControlState,
    ConnectionState,
    Device,
    KnownDevice,
    MacAddress,
    NewDeviceAccess,
)
from .orchestrator import DeviceMutationOrchestrator, build_orchestrator
from .page_client import RouterPageClient
