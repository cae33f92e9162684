#!/usr/bin/env python3
"""
Typer-based CLI for managing the router's access control lists.
"""

from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Annotated, Iterator, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .auth import StaticCredentialProvider
from .config import RouterConfig
from .exceptions import RouterError, UnsupportedArityError
from .known_devices import CsvKnownDeviceSource
from .logging_config import configure_logging
from .models import AccessControl, ConnectionState, Device
from .orchestrator import DeviceMutationOrchestrator, build_orchestrator

console = Console()


class State:
    """Global CLI state."""
    config_path: Path = Path(".env")
    debug: bool = False


state = State()


class AccessChoice(str, Enum):
    allowed = "allowed"
    blocked = "blocked"

    def to_access(self) -> AccessControl:
        return AccessControl.ALLOWED if self is AccessChoice.allowed else AccessControl.BLOCKED


app = typer.Typer(
    name="netgear-acl",
    help="🔒 Manage Netgear router access control from the command line",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback()
def main(
    config: Annotated[
        Path,
        typer.Option(
            '--config', '-c',
            help='📁 Path to .env configuration file',
            envvar='NETGEAR_CONFIG',
        )
    ] = Path(".env"),
    debug: Annotated[
        bool,
        typer.Option('--debug', help='🐛 Enable debug logging')
    ] = False,
):
    """🔒 Block, unblock, add and remove devices on a Netgear router."""
    state.config_path = config
    state.debug = debug


def _connect() -> DeviceMutationOrchestrator:
    config = RouterConfig.from_env(str(state.config_path))
    configure_logging(config.log_file, debug=state.debug)

    known = None
    if config.known_devices_file:
        known = CsvKnownDeviceSource(config.known_devices_file).load()

    credentials = None
    if config.username and not config.password:
        password = typer.prompt(f"Password for {config.username}", hide_input=True)
        credentials = StaticCredentialProvider(config.username, password)

    return build_orchestrator(config, known_devices=known, credential_provider=credentials)


@contextmanager
def _router() -> Iterator[DeviceMutationOrchestrator]:
    orchestrator = _connect()
    try:
        yield orchestrator
    finally:
        orchestrator.close()


def _fail(error: Exception) -> None:
    console.print(f"❌ [bold red]Error: {error}[/bold red]")
    if state.debug:
        console.print_exception(show_locals=False)
    raise typer.Exit(1)


def _print_devices(devices: List[Device], title: str) -> None:
    table = Table(title=title)
    table.add_column("Name", style="white", max_width=30)
    table.add_column("Detected name", style="cyan", max_width=30)
    table.add_column("MAC", style="blue")
    table.add_column("Connection", style="yellow")
    table.add_column("Access")

    for device in devices:
        access_style = "green" if device.access_control is AccessControl.ALLOWED else "red"
        table.add_row(
            device.name or "",
            device.detected_name,
            device.mac_address,
            device.connection.value,
            f"[{access_style}]{device.access_control.value}[/{access_style}]",
        )
    console.print(table)


@app.command()
def devices(
    online: Annotated[bool, typer.Option('--online', help='📶 Only connected devices')] = False,
    offline: Annotated[bool, typer.Option('--offline', help='💤 Only devices not connected')] = False,
    refresh: Annotated[bool, typer.Option('--refresh', help='🔄 Ignore cached page')] = False,
):
    """📋 List the devices the router knows about."""
    connection = None
    if online and not offline:
        connection = ConnectionState.ONLINE
    elif offline and not online:
        connection = ConnectionState.OFFLINE

    try:
        with _router() as orchestrator:
            found = orchestrator.list_devices(connection, force_refresh=refresh)
    except (RouterError, ValueError) as e:
        _fail(e)

    _print_devices(found, f"Devices ({len(found)})")


@app.command()
def status():
    """📊 Show whether access control is on and how new devices are treated."""
    try:
        with _router() as orchestrator:
            current = orchestrator.get_access_control_state()
    except (RouterError, ValueError) as e:
        _fail(e)

    console.print(f"Access control: [cyan]{current.access_control.value}[/cyan]")
    console.print(f"New devices: [cyan]{current.new_device_access.value}[/cyan]")


def _change_access(macs: List[str], access: AccessControl) -> None:
    targets = [Device(mac_address=mac) for mac in macs]
    try:
        with _router() as orchestrator:
            if access is AccessControl.BLOCKED:
                result = orchestrator.block(targets)
            else:
                result = orchestrator.unblock(targets)
    except UnsupportedArityError as e:
        console.print(f"⚠️ [bold yellow]{e}; nothing changed[/bold yellow]")
        raise typer.Exit(1)
    except (RouterError, ValueError) as e:
        _fail(e)

    if result is None:
        console.print("⚠️ [bold yellow]Device not found or not updated[/bold yellow]")
        raise typer.Exit(1)
    _print_devices([result], "Device")


@app.command()
def block(
    macs: Annotated[List[str], typer.Argument(help='MAC address of the device to block')],
):
    """🚫 Block a device."""
    _change_access(macs, AccessControl.BLOCKED)


@app.command()
def unblock(
    macs: Annotated[List[str], typer.Argument(help='MAC address of the device to allow')],
):
    """✅ Allow a device."""
    _change_access(macs, AccessControl.ALLOWED)


@app.command()
def add(
    mac: Annotated[str, typer.Argument(help='MAC address of the device')],
    name: Annotated[Optional[str], typer.Option('--name', '-n', help='Device name')] = None,
    access: Annotated[
        AccessChoice,
        typer.Option('--access', help='List to add the device to')
    ] = AccessChoice.allowed,
):
    """➕ Add a device to the allowed or blocked list."""
    device = Device(mac_address=mac, name=name)
    try:
        with _router() as orchestrator:
            orchestrator.add_device(device, access.to_access())
    except (RouterError, ValueError) as e:
        _fail(e)
    console.print(f"✅ Add request sent for [cyan]{mac}[/cyan]")


@app.command()
def remove(
    mac: Annotated[str, typer.Argument(help='MAC address of the device')],
):
    """➖ Remove a device that is not connected from its list."""
    try:
        with _router() as orchestrator:
            device = orchestrator.find_device(mac)
            if device is None:
                console.print(f"⚠️ [bold yellow]Device {mac} not found[/bold yellow]")
                raise typer.Exit(1)
            orchestrator.remove_device(device)
    except (RouterError, ValueError) as e:
        _fail(e)
    console.print(f"✅ Remove request sent for [cyan]{mac}[/cyan]")


@app.command()
def enable(
    new_devices: Annotated[
        Optional[AccessChoice],
        typer.Option('--new-devices', help='Allow or block devices the router has not seen')
    ] = None,
):
    """🔛 Turn access control on."""
    try:
        with _router() as orchestrator:
            orchestrator.enable_access_control(new_devices.to_access() if new_devices else None)
    except (RouterError, ValueError) as e:
        _fail(e)
    console.print("✅ Access control enable request sent")


@app.command()
def disable():
    """📴 Turn access control off."""
    try:
        with _router() as orchestrator:
            orchestrator.disable_access_control()
    except (RouterError, ValueError) as e:
        _fail(e)
    console.print("✅ Access control disable request sent")


if __name__ == "__main__":
    app()
