"""CLI: roomsync connect|status|logout"""

from typing import Optional

import click
from rich.console import Console

from roomsync.client import AsyncRoomSync

console = Console()


def _load_config() -> dict:
    from roomsync.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from roomsync.cli.main import _save_config
    _save_config(cfg)


def _progress(status):
    from roomsync.cli.main import _progress
    return _progress(status)


def _run(coro):
    from roomsync.cli.main import _run
    return _run(coro)


@click.command("connect")
@click.argument("user_id")
@click.option("--token", prompt=True, hide_input=True, help="Access token")
@click.option("--server", default=None, help="Homeserver (host[:port] or URL). Defaults to the user id's server.")
def connect_cmd(user_id: str, token: str, server: Optional[str]):
    """Start a session and run the initial full-state sync."""

    async def _connect():
        # Transaction ids are scoped to the access token; keep counting while it is unchanged.
        saved = _load_config()
        same_token = saved.get("token") == token and saved.get("username") == user_id
        txn_id = int(saved.get("txn_id", 0)) if same_token else 0

        client = AsyncRoomSync()
        try:
            with console.status("Syncing...") as status:
                client.projector.on_progress = _progress(status)
                session = await client.connect(user_id, token, server, txn_id=txn_id)
            _save_config(session.to_record().model_dump())
            console.print(f"[green]Connected as {user_id} to {session.server} ({len(session.rooms)} rooms)[/green]")
        finally:
            await client.close()

    _run(_connect())


@click.command("status")
def status_cmd():
    """Show the saved session."""
    cfg = _load_config()
    if cfg.get("token"):
        console.print(f"[green]Session[/green] for {cfg.get('username')} on {cfg.get('server')} (txn {cfg.get('txn_id', 0)})")
    else:
        console.print("[yellow]No saved session. Run `roomsync connect`.[/yellow]")


@click.command("logout")
def logout_cmd():
    """Forget the saved session."""
    _save_config({})
    console.print("[green]Session cleared.[/green]")
