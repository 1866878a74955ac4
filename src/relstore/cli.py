"""
relstore CLI.

Usage:
    relstore upload ./backup.tar.gz --repo owner/repo
    relstore download '{"asset_url": "...", "chunks": 3}' --output ./restore
    relstore download locator.json
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape

from relstore.exceptions import RelstoreError
from relstore.logging import configure_logging
from relstore.models import FileLocator
from relstore.store import AsyncReleaseStore

console = Console()
err_console = Console(stderr=True)

DEFAULT_DOWNLOAD_NAME = "download.bin"


def get_token(ctx: click.Context, required: bool = True) -> str | None:
    """Get token from context (option or RELSTORE_TOKEN)."""
    token = ctx.obj.get("token") if ctx.obj else None
    if not token and required:
        err_console.print("[red]Error:[/red] Set RELSTORE_TOKEN or pass --token")
        raise SystemExit(1)
    return token or None


def fail(error: object) -> NoReturn:
    """Print an error and exit with status 1."""
    err_console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise SystemExit(1)


def load_locator(value: str) -> FileLocator:
    """Read a locator from a JSON string or from a file holding one."""
    text = value
    if not value.lstrip().startswith("{"):
        path = Path(value)
        if not path.is_file():
            raise click.BadParameter(f"not a locator or locator file: {value}")
        text = path.read_text()
    return FileLocator.from_json(text)


@click.group()
@click.option("--token", envvar="RELSTORE_TOKEN", help="Repository access token")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default: RELSTORE_LOG_LEVEL or INFO)",
)
@click.option("--log-json", is_flag=True, help="Emit JSON log lines")
@click.version_option(package_name="relstore")
@click.pass_context
def main(
    ctx: click.Context,
    token: str | None,
    log_level: str | None,
    log_json: bool,
) -> None:
    """relstore: store files of any size in release assets."""
    ctx.ensure_object(dict)
    ctx.obj["token"] = token
    configure_logging(level=log_level, json_output=log_json or None)


# =============================================================================
# Upload
# =============================================================================


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--repo", "-r", required=True, help="Repository as owner/name or URL")
@click.option(
    "--locator-out",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the locator JSON to this file",
)
@click.pass_context
def upload(ctx: click.Context, path: Path, repo: str, locator_out: Path | None) -> None:
    """Upload a file and print its locator.

    Examples:

        relstore upload ./backup.tar.gz --repo owner/repo

        relstore upload ./model.bin -r owner/repo -o model.locator.json
    """
    token = get_token(ctx)
    try:
        locator = asyncio.run(
            AsyncReleaseStore().upload_file(path.name, path.read_bytes(), repo, token)
        )
        if locator_out is not None:
            locator_out.write_text(locator.to_json())
            err_console.print(f"[dim]Locator written to[/dim] {locator_out}")
    except (RelstoreError, OSError, ValueError) as e:
        fail(e)

    console.print_json(locator.to_json())


# =============================================================================
# Download
# =============================================================================


@main.command()
@click.argument("locator")
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory to write the file into",
)
@click.pass_context
def download(ctx: click.Context, locator: str, output: Path) -> None:
    """Download a file by locator (JSON string or locator file).

    Examples:

        relstore download model.locator.json --output ./models
    """
    token = get_token(ctx, required=False)
    try:
        file_locator = load_locator(locator)
        data, file_name = asyncio.run(
            AsyncReleaseStore().download_file(file_locator, token)
        )

        # Never let a stored name escape the output directory
        target_name = Path(file_name).name or DEFAULT_DOWNLOAD_NAME
        output.mkdir(parents=True, exist_ok=True)
        target = output / target_name
        target.write_bytes(data)
    except click.BadParameter as e:
        fail(e.format_message())
    except (RelstoreError, OSError) as e:
        fail(e)

    console.print(f"Saved [cyan]{target}[/cyan] ({len(data):,} bytes)")


if __name__ == "__main__":
    main()
