"""CLI handling for clipkeeper.

This module provides the command-line interface: `run` starts the clipboard
history daemon, `ctl` sends commands to a running daemon over its control
socket. Every `run` option can also be set through a CLIPKEEPER_* environment
variable.

Usage:
    clipkeeper run [--history-size N] [--move-item-first] [--defer-push] [--verbose]
    clipkeeper ctl list
    clipkeeper ctl select HANDLE
    clipkeeper ctl config history_size=30
"""

import click
import sys

from clipkeeper.config import DEFAULT_HISTORY_SIZE, DEFAULT_PREVIEW_LENGTH, DEFAULT_PUSH_DELAY
from clipkeeper.entry import DEFAULT_CONTENT_TYPES, TEXT_CONTENT_TYPE
from clipkeeper.main_logging import configure_logging
from clipkeeper.main_options import ContentTypeList, MutuallyExclusiveOption
from clipkeeper.paths import cache_dir, default_socket_path


socket_option = click.option(
    "--socket",
    type=click.Path(dir_okay=False),
    default=lambda: str(default_socket_path()),
    show_default="$XDG_RUNTIME_DIR/clipkeeper.sock",
    envvar="CLIPKEEPER_SOCKET",
    help="Control socket path",
)


@click.group()
def main() -> None:
    """Keep a history of the X11 clipboard."""


@main.command()
@click.option(
    "--history-size",
    type=click.IntRange(min=1),
    default=DEFAULT_HISTORY_SIZE,
    show_default=True,
    envvar="CLIPKEEPER_HISTORY_SIZE",
    help="Maximum number of non-favorite entries",
)
@click.option(
    "--content-types",
    type=ContentTypeList(),
    cls=MutuallyExclusiveOption,
    exclusive_with=["text_only"],
    default=",".join(DEFAULT_CONTENT_TYPES),
    envvar="CLIPKEEPER_CONTENT_TYPES",
    help="Comma-separated content types to capture, in priority order",
)
@click.option(
    "--text-only",
    is_flag=True,
    cls=MutuallyExclusiveOption,
    exclusive_with=["content_types"],
    envvar="CLIPKEEPER_TEXT_ONLY",
    help="Capture text/plain only",
)
@click.option(
    "--move-item-first",
    is_flag=True,
    envvar="CLIPKEEPER_MOVE_ITEM_FIRST",
    help="Move a reused entry to the front of the history",
)
@click.option(
    "--defer-push",
    is_flag=True,
    envvar="CLIPKEEPER_DEFER_PUSH",
    help="Write cycled entries to the clipboard only after a pause",
)
@click.option(
    "--push-delay",
    type=click.FloatRange(min=0),
    default=DEFAULT_PUSH_DELAY,
    show_default=True,
    envvar="CLIPKEEPER_PUSH_DELAY",
    help="Pause in seconds used by --defer-push",
)
@click.option(
    "--cache-only-favorites",
    is_flag=True,
    envvar="CLIPKEEPER_CACHE_ONLY_FAVORITES",
    help="Persist favorite entries only",
)
@click.option(
    "--strip-text",
    is_flag=True,
    envvar="CLIPKEEPER_STRIP_TEXT",
    help="Strip surrounding whitespace from captured text",
)
@click.option(
    "--preview-length",
    type=click.IntRange(min=1),
    default=DEFAULT_PREVIEW_LENGTH,
    show_default=True,
    envvar="CLIPKEEPER_PREVIEW_LENGTH",
    help="Maximum length of entry previews",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=lambda: str(cache_dir()),
    show_default="$XDG_CACHE_HOME/clipkeeper",
    envvar="CLIPKEEPER_DATA_DIR",
    help="Directory holding the persisted history",
)
@socket_option
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    envvar="CLIPKEEPER_LOG_FILE",
    help="Also log to this file (rotated)",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
def run(
    history_size: int,
    content_types: tuple[str, ...],
    text_only: bool,
    move_item_first: bool,
    defer_push: bool,
    push_delay: float,
    cache_only_favorites: bool,
    strip_text: bool,
    preview_length: int,
    data_dir: str,
    socket: str,
    log_file: str | None,
    verbose: bool,
) -> None:
    """Run the clipboard history daemon."""
    from clipkeeper.config import EngineConfig

    configure_logging(verbose, log_file)

    config = EngineConfig(
        history_size=history_size,
        content_types=(TEXT_CONTENT_TYPE,) if text_only else content_types,
        move_item_first=move_item_first,
        defer_push=defer_push,
        push_delay=push_delay,
        cache_only_favorites=cache_only_favorites,
        strip_text=strip_text,
        preview_length=preview_length,
    )
    _run_daemon(config, socket, data_dir)


def _run_daemon(config, socket: str, data_dir: str) -> None:
    """Run the daemon, reporting fatal errors on stderr.

    Args:
        config: The engine configuration.
        socket: Path to the control socket.
        data_dir: Directory holding the persisted history.
    """
    import asyncio
    from pathlib import Path

    from clipkeeper.daemon import run_daemon
    from clipkeeper.errors import ProtocolError

    try:
        asyncio.run(run_daemon(config, socket, Path(data_dir)))
    except (ProtocolError, ConnectionError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.group()
@socket_option
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON responses")
@click.pass_context
def ctl(ctx: click.Context, socket: str, as_json: bool) -> None:
    """Send a command to the running daemon."""
    ctx.obj = {"socket": socket, "json": as_json}


def _send(ctx: click.Context, line: str) -> dict:
    """Send line to the daemon, exiting 1 on failure.

    Args:
        ctx: The click context holding the socket path.
        line: The command line.

    Returns:
        The successful response.
    """
    import asyncio
    import json

    from clipkeeper.control_client import send_command
    from clipkeeper.errors import ProtocolError

    try:
        response = asyncio.run(send_command(ctx.obj["socket"], line))
    except (ProtocolError, ConnectionError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if ctx.obj["json"]:
        click.echo(json.dumps(response))
    if not response.get("ok"):
        if not ctx.obj["json"]:
            click.echo(f"Error: {response.get('error', 'command failed')}", err=True)
        sys.exit(1)
    return response


def _echo_entries(ctx: click.Context, response: dict) -> None:
    if ctx.obj["json"]:
        return
    for item in response["entries"]:
        marker = "*" if item["selected"] else " "
        star = "F" if item["favorite"] else " "
        click.echo(f"{marker}{star} {item['handle']:>4}  {item['preview']}")


@ctl.command(name="list")
@click.pass_context
def list_entries(ctx: click.Context) -> None:
    """List entries, history first, then favorites."""
    _echo_entries(ctx, _send(ctx, "list"))


@ctl.command()
@click.argument("text")
@click.pass_context
def search(ctx: click.Context, text: str) -> None:
    """List entries containing TEXT."""
    _echo_entries(ctx, _send(ctx, f"search {text}"))


@ctl.command()
@click.argument("handle", type=int)
@click.pass_context
def select(ctx: click.Context, handle: int) -> None:
    """Select an entry and put it on the clipboard."""
    _send(ctx, f"select {handle}")


@ctl.command(name="next")
@click.pass_context
def next_entry(ctx: click.Context) -> None:
    """Select the next entry."""
    _send(ctx, "next")


@ctl.command(name="prev")
@click.pass_context
def previous_entry(ctx: click.Context) -> None:
    """Select the previous entry."""
    _send(ctx, "prev")


@ctl.command()
@click.argument("handle", type=int)
@click.pass_context
def favorite(ctx: click.Context, handle: int) -> None:
    """Toggle the favorite flag of an entry."""
    response = _send(ctx, f"favorite {handle}")
    if not ctx.obj["json"]:
        click.echo("favorite" if response["favorite"] else "not favorite")


@ctl.command()
@click.argument("handle", type=int)
@click.pass_context
def delete(ctx: click.Context, handle: int) -> None:
    """Delete an entry."""
    _send(ctx, f"delete {handle}")


@ctl.command()
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Delete all non-favorite entries except the selected one."""
    response = _send(ctx, "clear")
    if not ctx.obj["json"]:
        click.echo(f"Removed {response['removed']} entries")


@ctl.command()
@click.pass_context
def undo(ctx: click.Context) -> None:
    """Delete the most recent capture."""
    _send(ctx, "undo")


@ctl.command()
@click.argument("mode", type=click.Choice(["on", "off", "toggle"]), default="toggle")
@click.pass_context
def private(ctx: click.Context, mode: str) -> None:
    """Switch private mode (no capture while on)."""
    response = _send(ctx, f"private {mode}")
    if not ctx.obj["json"]:
        click.echo("private mode on" if response["private"] else "private mode off")


@ctl.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show daemon status."""
    response = _send(ctx, "status")
    if not ctx.obj["json"]:
        for key in ("private", "entries", "favorites", "selected", "refreshing", "push_pending"):
            click.echo(f"{key}: {response.get(key)}")


@ctl.command()
@click.argument("settings", nargs=-1)
@click.pass_context
def config(ctx: click.Context, settings: tuple[str, ...]) -> None:
    """Show settings, or change them with KEY=VALUE arguments.

    For example: clipkeeper ctl config history_size=30 move_item_first=on
    """
    line = " ".join(("config", *settings))
    response = _send(ctx, line)
    if not ctx.obj["json"]:
        for key, value in response["config"].items():
            if isinstance(value, list):
                value = ",".join(value)
            click.echo(f"{key}: {value}")
