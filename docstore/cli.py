#!/usr/bin/env python3

from __future__ import annotations
import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from socketio.exceptions import ConnectionError as SocketConnectionError
import typer
from rich.console import Console

from shared.log import configure_root_logging, get_logger, log_event
from shared.utils import is_http_url
from .api import DocumentStoreAPI, DocumentStoreError
from .config import ConnectionConfig, StartupIOFailure, default_config_path, load_config
from .events import ConnectionEvent, DocumentEvent, DocumentNotification
from .socket_client import SocketIOClient, create_client

app = typer.Typer(help="Kaleido document store sample client")
console = Console()
logger = get_logger(__name__)


def _config_option() -> Any:
    return typer.Option(None, "--config", "-c", help="Path to config.json (default: $DOCSTORE_CONFIG or resources/config.json)")


def _verbose_option() -> Any:
    return typer.Option(False, "--verbose", "-v", help="Debug logging, including the socket and HTTP libraries")


def _load(config_path: Optional[Path], verbose: bool = False) -> ConnectionConfig:
    if verbose:
        configure_root_logging("DEBUG")
    path = config_path or default_config_path()
    try:
        return load_config(path)
    except StartupIOFailure:
        logger.exception("Startup failed")
        raise typer.Exit(code=1)


def _print_result(result: Any) -> None:
    if result is None:
        console.print("[dim]OK (empty response)[/]")
    elif isinstance(result, (dict, list)):
        console.print(json.dumps(result, indent=2))
    else:
        console.print(result)


def _run_api(config: ConnectionConfig, call: Callable[[DocumentStoreAPI], Awaitable[Any]]) -> Any:
    creds = config.app_credentials

    async def runner() -> Any:
        async with DocumentStoreAPI(config.rest_base_url, creds.user, creds.password) as api:
            return await call(api)

    try:
        return asyncio.run(runner())
    except DocumentStoreError as e:
        console.print(f"[red]Request failed[/]: {e}")
        raise typer.Exit(code=1)


def register_observers(client: SocketIOClient) -> SocketIOClient:
    """Log the connection lifecycle and document store notifications."""
    endpoint = client.api_endpoint

    client.on(ConnectionEvent.CONNECT, lambda _: logger.info("Socket connected.", extra={"endpoint": endpoint}))
    client.on(ConnectionEvent.ERROR, lambda _: logger.info("Error.", extra={"endpoint": endpoint}))
    client.on(ConnectionEvent.DISCONNECT, lambda _: logger.info("Socket disconnected.", extra={"endpoint": endpoint}))

    labels = {
        DocumentEvent.DOCUMENT_SENT: "Document sent",
        DocumentEvent.DOCUMENT_RECEIVED: "Document received",
        DocumentEvent.TRANSFER_ACKNOWLEDGEMENT: "Transfer acknowledgement",
    }

    def log_document(note: DocumentNotification) -> None:
        log_event(logger, "info", f"{labels[note.event]}: {json.dumps(note.data)}",
                  event=note.event.value, document=note.document)

    for doc_event in DocumentEvent:
        client.on(doc_event, log_document)
    return client


async def listen_once(client: SocketIOClient) -> None:
    """Open the single connection and wait for it to end."""
    await client.connect()
    await client.wait()


@app.command()
def listen(
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """Connect to the Socket.IO endpoint and log events until disconnected."""
    config = _load(config_path, verbose)
    if not is_http_url(config.api_endpoint):
        logger.warning(f"apiEndpoint {config.api_endpoint!r} does not look like a URL")
    client = register_observers(create_client(config, verbose=verbose))
    try:
        asyncio.run(listen_once(client))
    except SocketConnectionError as e:
        logger.error(f"Connection failed: {e}", extra={"endpoint": config.api_endpoint})
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        console.print("[dim]Interrupted[/]")


@app.command()
def upload(
    local_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to upload"),
    remote_path: str = typer.Argument(..., help="Destination path in the document store"),
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """Upload a local file."""
    config = _load(config_path, verbose)
    _print_result(_run_api(config, lambda api: api.upload(local_path, remote_path)))


@app.command()
def download(
    remote_path: str = typer.Argument(..., help="Document path in the store"),
    dest: Path = typer.Argument(..., help="Where to write the file"),
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
    progress: bool = typer.Option(True, help="Show a progress bar"),
):
    """Download a document to a local file."""
    config = _load(config_path, verbose)
    written = _run_api(config, lambda api: api.download(remote_path, dest, progress=progress))
    console.print(f"[bold green]Saved[/] {remote_path} to {dest} ({written} bytes)")


@app.command()
def delete(
    remote_path: str = typer.Argument(..., help="Document path in the store"),
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """Delete a document."""
    config = _load(config_path, verbose)
    _print_result(_run_api(config, lambda api: api.delete(remote_path)))


@app.command()
def metadata(
    remote_path: str = typer.Argument(..., help="Document path in the store"),
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """Show document details without downloading it."""
    config = _load(config_path, verbose)
    _print_result(_run_api(config, lambda api: api.metadata(remote_path)))


@app.command("hash")
def calculate_hash(
    remote_path: str = typer.Argument(..., help="Document path in the store"),
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """Calculate the hash of a single document."""
    config = _load(config_path, verbose)
    _print_result(_run_api(config, lambda api: api.calculate_hash(remote_path)))


@app.command("sync-hashes")
def sync_hashes(
    reset: bool = typer.Option(True, help="Recalculate hashes already stored"),
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """Calculate hashes for all documents."""
    config = _load(config_path, verbose)
    _print_result(_run_api(config, lambda api: api.sync_hashes(reset=reset)))


@app.command()
def search(
    query: str = typer.Argument(..., help="Search text"),
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """Search documents."""
    config = _load(config_path, verbose)
    _print_result(_run_api(config, lambda api: api.search(query)))


@app.command("set-preference")
def set_preference(
    key: str = typer.Argument(..., help="Preference key, e.g. receivedDocumentsPath"),
    value: str = typer.Argument(..., help="Preference value"),
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """Set a document store preference."""
    config = _load(config_path, verbose)
    _print_result(_run_api(config, lambda api: api.set_preference(key, value)))


@app.command()
def transfer(
    document: str = typer.Argument(..., help="Document path in the store"),
    from_: str = typer.Option(..., "--from", help="Sending destination"),
    to: str = typer.Option(..., "--to", help="Receiving destination"),
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """Transfer a document to another destination."""
    config = _load(config_path, verbose)
    _print_result(_run_api(config, lambda api: api.transfer(from_, to, document)))


@app.command()
def transfers(
    config_path: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """List transfer logs."""
    config = _load(config_path, verbose)
    _print_result(_run_api(config, lambda api: api.transfer_logs()))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
