#!/usr/bin/env python3
"""
Known-device names supplied by the user, and their merge onto router devices.

The import file is a two-column CSV of ``name,mac`` rows with an optional
header row.
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence, Union

from .exceptions import KnownDeviceImportError
from .models import UNKNOWN_NAME, Device, KnownDevice, normalize_mac

log = logging.getLogger(__name__)


class KnownDeviceSource(Protocol):
    """Anything that can supply known devices."""

    def load(self) -> List[KnownDevice]:
        ...


class CsvKnownDeviceSource:
    """Loads known devices from a CSV file."""

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        self.path = Path(path).expanduser()
        self.encoding = encoding

    def load(self) -> List[KnownDevice]:
        """
        Read and validate the CSV.

        Returns:
            Known devices with canonical MACs, in file order

        Raises:
            KnownDeviceImportError: If the file cannot be read or no row is usable
        """
        try:
            with self.path.open("r", encoding=self.encoding, newline="") as f:
                rows = list(csv.reader(f))
        except (OSError, csv.Error) as e:
            raise KnownDeviceImportError(f"Cannot read known devices from {self.path}: {e}")

        known = parse_known_device_rows(rows, source=str(self.path))
        if not known:
            raise KnownDeviceImportError(f"No usable known devices in {self.path}")

        log.info(f"Loaded {len(known)} known devices from {self.path}")
        return known


def _is_header(row: Sequence[str]) -> bool:
    return len(row) >= 2 and row[0].strip().lower() == "name" and row[1].strip().lower() == "mac"


def parse_known_device_rows(rows: Iterable[Sequence[str]], source: str = "<rows>") -> List[KnownDevice]:
    """
    Validate raw CSV rows, dropping the unusable ones with a logged reason.

    Args:
        rows: Rows of at least two cells: name, MAC
        source: Label used in log messages

    Returns:
        Valid known devices
    """
    known: List[KnownDevice] = []
    for line_num, row in enumerate(rows, 1):
        if not row or not any(cell.strip() for cell in row):
            continue
        if line_num == 1 and _is_header(row):
            continue

        if len(row) < 2:
            log.warning(f"Skipping {source}:{line_num}: expected name and MAC, got {row!r}")
            continue

        name = row[0].strip()
        if not name:
            log.warning(f"Skipping {source}:{line_num}: missing device name")
            continue

        mac = normalize_mac(row[1])
        if mac is None:
            log.warning(f"Skipping {source}:{line_num}: invalid MAC address {row[1]!r}")
            continue

        known.append(KnownDevice(name=name, mac=mac))
    return known


def merge_known_device(device: Device, known: Optional[Sequence[KnownDevice]]) -> Device:
    """
    Name a device after the first known entry with the same MAC.

    Devices without a match, or merged against an empty list, get the
    unknown-name sentinel.
    """
    device_mac = normalize_mac(device.mac_address) or device.mac_address
    match = next((entry for entry in known or () if entry.mac == device_mac), None)
    device.name = match.name if match else UNKNOWN_NAME
    return device


def merge_known_devices(devices: Iterable[Device], known: Optional[Sequence[KnownDevice]]) -> List[Device]:
    """Apply merge_known_device to every device, in order."""
    return [merge_known_device(device, known) for device in devices]
