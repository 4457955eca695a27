"""Command-line operator console for web OTA updates."""

import asyncio
import logging
import sys
from pathlib import Path

import aiofiles
import click

from webota.config import ClientConfig, load_config
from webota.errors import AuthExpiredError, ValidationError
from webota.models.attempt import RemoteURLSource, UploadSource
from webota.models.status import Badge, MessageLevel, UpdateState
from webota.services.controller import UpdateController
from webota.services.credential_store import CredentialStore
from webota.services.gateway import RequestGateway
from webota.services.session import SessionService, format_uptime
from webota.services.sink import LoggingSink
from webota.utils.logging import setup_logger
from webota.utils.validation import validate_firmware, validate_url

logger = logging.getLogger("webota.cli")


class ConsoleSink(LoggingSink):
    """Renders controller output to the terminal (and the log file)."""

    _COLORS = {
        MessageLevel.INFO: None,
        MessageLevel.SUCCESS: "green",
        MessageLevel.WARNING: "yellow",
        MessageLevel.ERROR: "red",
    }

    def show_progress(self, percent: int) -> None:
        if percent == self._last_percent:
            return
        super().show_progress(percent)
        filled = percent // 5
        click.echo(f"\r[{'#' * filled}{'.' * (20 - filled)}] {percent:3d}%", nl=False)

    def show_badge(self, badge: Badge) -> None:
        super().show_badge(badge)
        if badge in (Badge.SUCCESS, Badge.ERROR):
            click.echo()

    def show_message(self, text: str, level: MessageLevel = MessageLevel.INFO) -> None:
        super().show_message(text, level)
        click.secho(text, fg=self._COLORS[level], err=level == MessageLevel.ERROR)

    def show_login(self) -> None:
        super().show_login()
        click.secho("Session expired, please login again.", fg="yellow", err=True)


def _build(ctx: click.Context):
    config: ClientConfig = ctx.obj["config"]
    sink = ConsoleSink()
    credentials = CredentialStore(storage_key=config.auth_storage_key)
    gateway = RequestGateway(
        config.base_url, credentials, sink=sink, timeout=config.request_timeout
    )
    return sink, gateway, SessionService(gateway, credentials)


async def _login(ctx: click.Context, session: SessionService) -> bool:
    try:
        await session.login(ctx.obj["username"], ctx.obj["password"])
    except AuthExpiredError as e:
        click.secho(str(e), fg="red", err=True)
        return False
    return True


async def _run_update(ctx: click.Context, submission) -> int:
    sink, gateway, session = _build(ctx)
    if not await _login(ctx, session):
        return 1

    controller = UpdateController(gateway, sink=sink, config=ctx.obj["config"])
    try:
        attempt = await controller.run(submission)
    finally:
        await controller.aclose()

    if attempt.state == UpdateState.SUCCEEDED:
        return 0
    logger.error(f"Update failed: {attempt.failure_reason.value if attempt.failure_reason else 'unknown'}")
    return 1


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSON config file (default: ./webota.json)",
)
@click.option("--base-url", envvar="WEBOTA_BASE_URL", default=None, help="Device base URL")
@click.option("--username", "-u", envvar="WEBOTA_USERNAME", default="admin", show_default=True)
@click.option("--password", "-p", envvar="WEBOTA_PASSWORD", default="", help="Device password")
@click.option("--verbose", "-v", is_flag=True, help="Log to the console as well")
@click.pass_context
def cli(ctx, config_path, base_url, username, password, verbose):
    """Web OTA operator console."""
    config = load_config(config_path, base_url=base_url)
    level = logging.DEBUG if verbose else getattr(logging, config.log_level)
    setup_logger("webota", config.log_file, level=level, console=verbose)

    ctx.ensure_object(dict)
    ctx.obj.update(config=config, username=username, password=password)


@cli.command()
@click.pass_context
def version(ctx):
    """Show the OTA library version (no login needed)."""

    async def _version():
        _, _, session = _build(ctx)
        click.echo(f"OTA version: {await session.load_ota_version()}")
        return 0

    sys.exit(asyncio.run(_version()))


@cli.command()
@click.pass_context
def status(ctx):
    """Login and show device firmware version and uptime."""

    async def _status():
        _, _, session = _build(ctx)
        if not await _login(ctx, session):
            return 1
        info = await session.load_status()
        if info is None:
            click.secho("Failed to load status", fg="red", err=True)
            return 1
        click.echo(f"Firmware version: {info.version}")
        click.echo(f"Uptime: {format_uptime(info.uptime)}")
        return 0

    sys.exit(asyncio.run(_status()))


@cli.command()
@click.argument("firmware", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def upload(ctx, firmware: Path):
    """Upload a local .bin image and follow the update."""
    config: ClientConfig = ctx.obj["config"]
    try:
        validate_firmware(firmware.name, firmware.stat().st_size, config.max_file_size).raise_if_invalid()
    except ValidationError as e:
        click.secho(str(e), fg="red", err=True)
        sys.exit(1)

    async def _upload():
        async with aiofiles.open(firmware, "rb") as f:
            data = await f.read()
        return await _run_update(ctx, UploadSource(filename=firmware.name, data=data))

    sys.exit(asyncio.run(_upload()))


@cli.command("update-url")
@click.argument("url")
@click.pass_context
def update_url(ctx, url: str):
    """Ask the device to fetch a .bin image from URL and follow the update."""
    url = url.strip()
    try:
        validate_url(url).raise_if_invalid()
    except ValidationError as e:
        click.secho(str(e), fg="red", err=True)
        sys.exit(1)

    sys.exit(asyncio.run(_run_update(ctx, RemoteURLSource(url=url))))


def main():
    """Main entry point for the console script."""
    cli(obj={})


if __name__ == "__main__":
    main()
