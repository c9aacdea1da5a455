"""
Asset directory CLI.

Usage:
    assetdir info releases/app.zip
    assetdir upload ./big.iso iso/big.iso --part-size 8388608
    assetdir download iso/big.iso ./big.iso
    assetdir read iso/big.iso --offset 32768 --length 2048 --output header.bin
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from assetdir.config import get_settings
from assetdir.exceptions import AssetDirectoryError
from assetdir.logging import setup_logging

if TYPE_CHECKING:
    from assetdir import AsyncAssetDirectoryClient

console = Console()
err_console = Console(stderr=True)

COPY_BUFFER_SIZE = 1024 * 1024


def _make_client(ctx: click.Context) -> AsyncAssetDirectoryClient:
    """Build the async client from the group options (settings fill the gaps)."""
    from assetdir import AsyncAssetDirectoryClient

    opts = ctx.obj or {}
    try:
        return AsyncAssetDirectoryClient(
            opts.get("endpoint"),
            api_key=opts.get("api_key"),
            username=opts.get("username"),
            password=opts.get("password"),
        )
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)


def _run(ctx: click.Context, coro_factory) -> None:
    """Run an async command body, turning SDK errors into exit code 1."""
    client = _make_client(ctx)

    async def runner() -> None:
        async with client:
            await coro_factory(client)

    try:
        asyncio.run(runner())
    except AssetDirectoryError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        raise SystemExit(1)


@click.group()
@click.option("--endpoint", envvar="ASSETDIR_ENDPOINT_URL", help="Asset directory endpoint URL")
@click.option("--api-key", envvar="ASSETDIR_API_KEY", help="API key")
@click.option("--username", help="Basic auth user name")
@click.option("--password", help="Basic auth password")
@click.option("--verbose", "-v", is_flag=True, help="Log requests to stderr")
@click.version_option(package_name="assetdir-sdk")
@click.pass_context
def main(
    ctx: click.Context,
    endpoint: str | None,
    api_key: str | None,
    username: str | None,
    password: str | None,
    verbose: bool,
) -> None:
    """Asset directory command-line interface."""
    ctx.ensure_object(dict)
    ctx.obj["endpoint"] = endpoint
    ctx.obj["api_key"] = api_key
    ctx.obj["username"] = username
    ctx.obj["password"] = password
    setup_logging("DEBUG" if verbose else get_settings().log_level, console=err_console)


# =============================================================================
# Info Command
# =============================================================================


@main.command()
@click.argument("path")
@click.pass_context
def info(ctx: click.Context, path: str) -> None:
    """Show metadata of a remote asset."""

    async def body(client: AsyncAssetDirectoryClient) -> None:
        item = await client.get_item_metadata(path)

        table = Table(show_header=False)
        table.add_column("Field", style="dim")
        table.add_column("Value")
        table.add_row("Name", item.full_name)
        table.add_row("Type", "directory" if item.directory else (item.content_type or "n/a"))
        if not item.directory:
            table.add_row("Size", f"{item.size:,}" if item.size is not None else "n/a")
        table.add_row("Created", item.created.isoformat())
        table.add_row("Modified", item.modified.isoformat())
        for algorithm in ("md5", "sha1", "sha256", "sha512"):
            digest = item.get_hash(algorithm)
            if digest:
                table.add_row(algorithm.upper(), digest.hex())
        for key, value in item.user_metadata.items():
            table.add_row(f"[cyan]{key}[/cyan]", value.value)

        console.print(table)

    _run(ctx, body)


# =============================================================================
# Transfer Commands
# =============================================================================


@main.command()
@click.argument("local", type=click.Path(exists=True, dir_okay=False))
@click.argument("remote")
@click.option("--content-type", "-t", help="Content type to record")
@click.option("--part-size", type=click.IntRange(min=1), help="Multipart part size in bytes")
@click.pass_context
def upload(
    ctx: click.Context,
    local: str,
    remote: str,
    content_type: str | None,
    part_size: int | None,
) -> None:
    """Upload a local file.

    Files larger than one part are sent as a multipart upload.

    Examples:

        assetdir upload ./app.zip releases/1.0/app.zip

        assetdir upload ./big.iso iso/big.iso --part-size 8388608
    """
    total_size = os.path.getsize(local)

    async def body(client: AsyncAssetDirectoryClient) -> None:
        channel = await client.upload_multipart_file(
            remote, total_size, content_type=content_type, part_size=part_size
        )
        async with channel:
            with open(local, "rb") as f:
                while chunk := f.read(COPY_BUFFER_SIZE):
                    await channel.write(chunk)
        console.print(f"[green]Uploaded[/green] {total_size:,} bytes to [cyan]{remote}[/cyan]")

    _run(ctx, body)


@main.command()
@click.argument("remote")
@click.argument("local", type=click.Path(dir_okay=False, writable=True))
@click.pass_context
def download(ctx: click.Context, remote: str, local: str) -> None:
    """Download a remote asset to a local file."""

    async def body(client: AsyncAssetDirectoryClient) -> None:
        written = 0
        async with await client.download_file(remote) as stream:
            with open(local, "wb") as f:
                async for chunk in stream.iter_chunks():
                    f.write(chunk)
                    written += len(chunk)
        console.print(f"[green]Downloaded[/green] {written:,} bytes to [cyan]{local}[/cyan]")

    _run(ctx, body)


@main.command()
@click.argument("remote")
@click.option("--offset", type=click.IntRange(min=0), default=0, help="Start offset in bytes")
@click.option("--length", type=click.IntRange(min=0), required=True, help="Bytes to read")
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), help="Write to file")
@click.pass_context
def read(
    ctx: click.Context,
    remote: str,
    offset: int,
    length: int,
    output: str | None,
) -> None:
    """Read a byte range of a remote asset.

    Writes raw bytes to stdout unless --output is given.
    """

    async def body(client: AsyncAssetDirectoryClient) -> None:
        async with await client.open_random_access_file(remote) as reader:
            reader.seek(offset)
            data = await reader.read(length)

        if output:
            with open(output, "wb") as f:
                f.write(data)
            err_console.print(f"[dim]{len(data):,} bytes written to {output}[/dim]")
        else:
            sys.stdout.buffer.write(data)
            sys.stdout.flush()

    _run(ctx, body)


# =============================================================================
# Entry Point
# =============================================================================


if __name__ == "__main__":
    main()
