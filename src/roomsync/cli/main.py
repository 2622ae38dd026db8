"""
roomsync CLI — `roomsync` command.

Commands:
  roomsync connect <user-id>     Start a session and run the initial sync
  roomsync status | logout       Saved session
  roomsync sync                  Full-state sync, list joined rooms
  roomsync view <room-id>        Room display name and recent timeline
  roomsync send <room-id> <msg>  Send a text message
"""

import asyncio
import json
import os
from pathlib import Path

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install roomsync[cli]")

from roomsync.client import AsyncRoomSync
from roomsync.errors import RoomSyncError

console = Console()


def _config_file() -> Path:
    home = os.environ.get("ROOMSYNC_HOME")
    return (Path(home) if home else Path.home() / ".roomsync") / "session.json"


def _load_config() -> dict:
    try:
        return json.loads(_config_file().read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    path = _config_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2))


def _progress(status):
    def on_progress(count: int, total: int) -> None:
        status.update(f"Folding events {count}/{total}...")
    return on_progress


async def _restore(client: AsyncRoomSync, status=None, initial_sync: bool = True):
    cfg = _load_config()
    if not cfg.get("token"):
        console.print("[red]No saved session. Run `roomsync connect` first.[/red]")
        raise SystemExit(1)
    if status is not None:
        client.projector.on_progress = _progress(status)
    return await client.restore(cfg, initial_sync=initial_sync)


def _run(coro):
    try:
        return asyncio.run(coro)
    except RoomSyncError as e:
        console.print(f"[red]{e.code}: {e}[/red]")
        raise SystemExit(1)


@click.group()
@click.version_option("0.1.0")
def main():
    """roomsync CLI — sync Matrix rooms into a local model."""


# Register subcommands from separate modules
from roomsync.cli.session import connect_cmd, status_cmd, logout_cmd
from roomsync.cli.rooms import sync_cmd, view_cmd, send_cmd

main.add_command(connect_cmd)
main.add_command(status_cmd)
main.add_command(logout_cmd)
main.add_command(sync_cmd)
main.add_command(view_cmd)
main.add_command(send_cmd)


if __name__ == "__main__":
    main()
