"""CLI: roomsync sync|view|send"""

import contextlib
import json

import click
from rich.console import Console
from rich.table import Table

from roomsync.client import AsyncRoomSync

console = Console()


def _restore(client, status=None, initial_sync=True):
    from roomsync.cli.main import _restore
    return _restore(client, status, initial_sync)


def _save_config(cfg: dict) -> None:
    from roomsync.cli.main import _save_config
    _save_config(cfg)


def _run(coro):
    from roomsync.cli.main import _run
    return _run(coro)


@click.command("sync")
@click.option("--json-output", "--json", is_flag=True)
def sync_cmd(json_output):
    """Run a full-state sync and list joined rooms."""

    async def _sync():
        client = AsyncRoomSync()
        try:
            syncing = contextlib.nullcontext() if json_output else console.status("Syncing...")
            with syncing as status:
                await _restore(client, status)
            rooms = [(room, client.view_room(room)) for room in client.rooms()]
        finally:
            await client.close()
        if json_output:
            click.echo(json.dumps([
                {"room_id": room.room_id, "name": name, "state": len(room.state), "timeline": len(room.timeline)}
                for room, name in rooms
            ], indent=2))
            return
        table = Table(title=f"Joined rooms ({len(rooms)})")
        table.add_column("ID", style="bold")
        table.add_column("Name")
        table.add_column("State", justify="right")
        table.add_column("Timeline", justify="right")
        for room, name in rooms:
            table.add_row(room.room_id, name, str(len(room.state)), str(len(room.timeline)))
        console.print(table)

    _run(_sync())


@click.command("view")
@click.argument("room_id")
@click.option("--limit", default=10, type=int)
def view_cmd(room_id, limit):
    """Show a room's display name and its most recent timeline events."""

    async def _view():
        client = AsyncRoomSync()
        try:
            with console.status("Syncing...") as status:
                await _restore(client, status)
            name = client.view_room(room_id)
            room = client.get_room(room_id)
        finally:
            await client.close()
        console.print(f"[bold]{name}[/bold] [dim]{room.room_id}[/dim]")
        # Timeline is newest-first; print oldest of the slice first.
        for event in reversed(list(room.timeline)[:limit]):
            body = event.content.get("body", f"[{event.type}]")
            console.print(f"[cyan]{event.sender.display_name(room.room_id)}[/cyan]: {body}")

    _run(_view())


@click.command("send")
@click.argument("room_id")
@click.argument("message")
def send_cmd(room_id, message):
    """Send a text message to a room."""

    async def _send():
        client = AsyncRoomSync()
        try:
            session = await _restore(client, initial_sync=False)
            result = await client.send_text(room_id, message)
            _save_config(session.to_record().model_dump())
        finally:
            await client.close()
        console.print(f"[green]Sent {result.get('event_id', '')}[/green]")

    _run(_send())
