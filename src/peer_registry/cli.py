"""Peer registry CLI.

This module provides commands for running and inspecting the registry:
- serve: Run the HTTP service under uvicorn
- list: Display all registered peers in table or JSON format
- show: Display one peer (resolving legacy keys)
- register: Register a descriptor from a JSON file
- delete: Remove a peer

Commands other than serve talk to Redis directly through PeerRegistry, so
reads repair and rewrite stored records exactly like the HTTP service does.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import redis.asyncio as redis
import typer
from rich.console import Console
from rich.table import Table

from peer_registry.config import settings
from peer_registry.errors import RegistryError
from peer_registry.registry import PeerRegistry
from peer_registry.resolver import PeerRequest
from peer_registry.store import RedisStore

T = TypeVar("T")

app = typer.Typer(
    name="peer-registry",
    help="Registry of peer/server descriptors",
    no_args_is_help=True,
)


def _run(operation: Callable[[PeerRegistry], Awaitable[T]]) -> T:
    """Run an operation against a registry backed by the configured Redis."""

    async def _with_registry() -> T:
        client = redis.Redis.from_url(settings.redis_url)
        try:
            store = RedisStore(redis=client, namespace=settings.key_namespace)
            return await operation(PeerRegistry.from_settings(store))
        finally:
            await client.aclose()

    try:
        return asyncio.run(_with_registry())
    except RegistryError as e:
        print(f"Error: {e}")
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (default from settings)"),
    port: int = typer.Option(None, "--port", "-p", help="Bind port (default from settings)"),
) -> None:
    """Run the HTTP service."""
    import uvicorn

    uvicorn.run(
        "peer_registry.main:app",
        host=host or settings.host,
        port=port or settings.port,
    )


@app.command("list")
def list_peers(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List all registered peers."""
    descriptors = _run(lambda registry: registry.list_peers())

    if json_output:
        data = [d.model_dump(mode="json", by_alias=True, exclude_none=True) for d in descriptors]
        print(json.dumps(data, indent=2))
        return

    console = Console()
    table = Table(title="Peers")
    table.add_column("Peer ID", style="cyan")
    table.add_column("Address")
    table.add_column("Current", justify="right")
    table.add_column("Soft", justify="right")
    table.add_column("Hard", justify="right")

    for d in descriptors:
        metric = d.metrics.get(settings.metric_key)
        address = d.address.ip
        if d.address.port:
            address = f"{address}:{d.address.port}"
        if d.address.protocol:
            address = f"{d.address.protocol}://{address}"
        table.add_row(
            d.peer_id,
            address,
            f"{metric.current:g}" if metric else "-",
            f"{metric.soft_limit:g}" if metric else "-",
            f"{metric.hard_limit:g}" if metric else "-",
        )

    console.print(table)


@app.command()
def show(
    peer_id: str = typer.Argument(..., help="Peer ID to show"),
) -> None:
    """Show one peer as JSON."""
    descriptor = _run(lambda registry: registry.get(PeerRequest(query={"peerId": peer_id})))
    print(json.dumps(descriptor.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))


@app.command()
def register(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON descriptor file"),
) -> None:
    """Register a peer from a JSON descriptor file."""
    body = path.read_bytes()
    descriptor = _run(lambda registry: registry.register(body))
    print(f"Registered peer {descriptor.peer_id}")


@app.command()
def delete(
    peer_id: str = typer.Argument(..., help="Peer ID to delete"),
) -> None:
    """Delete a peer."""
    deleted = _run(lambda registry: registry.delete(PeerRequest(query={"peerId": peer_id})))
    print(f"Deleted peer {deleted}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
