"""
redbloom CLI - Main Entry Point.

Provides the `redbloom` command for managing Redis-backed bloom filters.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from redbloom.core.config import get_settings
from redbloom.core.errors import RedbloomError
from redbloom.storage.client import connect
from redbloom.storage.redis_bloom import RedisBloomFilter

app = typer.Typer(
    name="redbloom",
    help="Bloom filters sharded across Redis bitmaps",
    no_args_is_help=True,
)

console = Console()


def run_with_client(func: Callable[[Any], Awaitable[Any]]) -> Any:
    """Connect, run func(client) and close, turning engine errors into exit code 1."""

    async def _run():
        client = await connect(get_settings())
        try:
            return await func(client)
        finally:
            await client.aclose()

    try:
        return asyncio.run(_run())
    except RedbloomError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Manage bloom filters stored in Redis."""
    if verbose:
        logging.getLogger("redbloom").setLevel(logging.DEBUG)


# =============================================================================
# Filter Commands
# =============================================================================


@app.command()
def create(
    name: str = typer.Argument(..., help="Filter name (Redis key)"),
    capacity: int | None = typer.Option(None, "--capacity", "-n", min=1, help="Expected element count"),
    error_rate: float | None = typer.Option(None, "--error-rate", "-p", help="Target false-positive rate"),
    shard_bits: int | None = typer.Option(None, "--shard-bits", help="Bits per Redis key"),
):
    """Create a new bloom filter."""
    settings = get_settings()
    n = capacity if capacity is not None else settings.default_capacity
    p = error_rate if error_rate is not None else settings.default_error_rate
    bits = shard_bits if shard_bits is not None else settings.shard_bits

    async def _create(client):
        return await RedisBloomFilter.create(
            client, name, n, p,
            shard_bits=bits,
            max_hash_attempts=settings.max_hash_attempts,
        )

    bloom = run_with_client(_create)
    params = bloom.parameters
    console.print(
        f"[green]Created[/green] {name}: m={params.m} bits, k={params.k} hashes, "
        f"{len(bloom.shards)} shard(s)"
    )


@app.command()
def add(
    name: str = typer.Argument(..., help="Filter name"),
    values: list[str] = typer.Argument(..., help="Values to add"),
):
    """Add values to a filter."""
    settings = get_settings()

    async def _add(client):
        bloom = await RedisBloomFilter.restore(
            client, name, max_hash_attempts=settings.max_hash_attempts
        )
        for value in values:
            await bloom.add(value)

    run_with_client(_add)
    console.print(f"[green]Added {len(values)} value(s) to[/green] {name}")


@app.command()
def check(
    name: str = typer.Argument(..., help="Filter name"),
    values: list[str] = typer.Argument(..., help="Values to test"),
):
    """Test values for membership."""
    settings = get_settings()

    async def _check(client):
        bloom = await RedisBloomFilter.restore(
            client, name, max_hash_attempts=settings.max_hash_attempts
        )
        return [(value, await bloom.exists(value)) for value in values]

    results = run_with_client(_check)

    table = Table(title=f"Membership in {name}")
    table.add_column("Value", style="cyan")
    table.add_column("Present")
    for value, present in results:
        table.add_row(value, "[green]probably[/green]" if present else "[red]no[/red]")
    console.print(table)


@app.command()
def info(name: str = typer.Argument(..., help="Filter name")):
    """Show filter parameters and shard layout."""

    async def _info(client):
        bloom = await RedisBloomFilter.restore(client, name)
        return bloom.info()

    data = run_with_client(_info)

    table = Table(title=f"Bloom filter {name}")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value")
    for key in ("n", "p", "m", "k", "shard_bits"):
        table.add_row(key, str(data[key]))
    console.print(table)

    shards = Table(title="Shards")
    shards.add_column("Key", style="cyan")
    shards.add_column("Max offset", justify="right")
    for shard in data["shards"]:
        shards.add_row(shard["key"], str(shard["max_offset"]))
    console.print(shards)


@app.command()
def clear(
    name: str = typer.Argument(..., help="Filter name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a filter and all of its shards."""
    if not yes:
        typer.confirm(f"Delete bloom filter '{name}'?", abort=True)

    async def _clear(client):
        bloom = await RedisBloomFilter.restore(client, name)
        return await bloom.clear()

    removed = run_with_client(_clear)
    console.print(f"[yellow]Cleared[/yellow] {name} ({removed} keys removed)")


# =============================================================================
# Utility Commands
# =============================================================================


@app.command()
def config():
    """Show the effective configuration."""
    settings = get_settings()
    table = Table(title="Current Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for field in type(settings).model_fields:
        table.add_row(field, str(getattr(settings, field)))

    console.print(table)


@app.command()
def version():
    """Show version information."""
    from redbloom import __version__

    console.print(f"redbloom v{__version__}")


# =============================================================================
# Entry Point
# =============================================================================


def main():
    """Main entry point for the CLI."""
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(levelname)s: %(message)s",
    )
    app()


if __name__ == "__main__":
    main()
