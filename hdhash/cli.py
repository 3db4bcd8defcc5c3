"""CLI entry point for hdhash."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from hdhash_core.chunking import chunk_ranges, find_borders
from hdhash_core.config import HdHashConfig, load_config
from hdhash_core.config.loader import DEFAULT_CONFIG_TEMPLATE
from hdhash_core.errors import HashError
from hdhash_core.hashing import (
    DirectoryHasher,
    FileHash,
    Hashes,
    file_hashes,
    format_ranges,
    ranges_from_blocks,
)
from hdhash_core.log import configure_logging

app = typer.Typer(
    name="hdhash",
    help="Compute HiDrive-compatible content hashes and chunk borders locally.",
)

config_app = typer.Typer(help="Manage hdhash configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: HdHashConfig | None = None


def _get_config() -> HdHashConfig:
    if _config is None:
        return load_config()
    return _config


def _fail(message: str) -> typer.Exit:
    rprint(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(1)


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to hdhash.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        raise _fail(str(e))
    configure_logging(_config.log_level, _config.log_format)


@app.command("file")
def file_cmd(
    path: Annotated[Path, typer.Argument(help="File to hash")],
    as_json: Annotated[bool, typer.Option("--json", help="Machine-readable output")] = False,
) -> None:
    """Print nhash, mhash and chash of a file."""
    cfg = _get_config()
    if not path.is_file():
        raise _fail(f"not a file: {path}")
    try:
        name_hash, mod_hash, content_hash = file_hashes(path, cfg.scan.read_size)
    except OSError as e:
        raise _fail(str(e))

    if as_json:
        typer.echo(json.dumps({
            "path": str(path),
            "nhash": name_hash.to_hex(),
            "mhash": mod_hash.to_hex(),
            "chash": content_hash.to_hex(),
        }))
        return
    table = Table(title=escape(str(path)))
    table.add_column("Hash", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("nhash", name_hash.to_hex())
    table.add_row("mhash", mod_hash.to_hex())
    table.add_row("chash", content_hash.to_hex())
    rprint(table)


@app.command("dir")
def dir_cmd(
    path: Annotated[str, typer.Argument(help="Directory to hash")] = ".",
) -> None:
    """Hash every entry below a directory."""
    cfg = _get_config()
    root = Path(path)
    if not root.is_dir():
        raise _fail(f"not a directory: {root}")
    try:
        snapshot = DirectoryHasher(cfg.scan).build(root)
    except OSError as e:
        raise _fail(str(e))

    table = Table(title=f"Directory Hashes ({len(snapshot.entries) - 1} entries)")
    table.add_column("Path", style="cyan")
    table.add_column("Type", justify="center")
    table.add_column("mhash", style="dim")
    table.add_column("chash", style="green")
    for rel, entry in sorted(snapshot.entries.items()):
        if not rel:
            continue
        kind = "dir" if entry.is_dir else "file"
        table.add_row(escape(rel), kind, entry.mhash.to_hex(), entry.chash.to_hex())
    rprint(table)
    rprint(f"\n[dim]Root chash:[/dim]  {snapshot.root.chash}")
    rprint(f"[dim]Root mohash:[/dim] {snapshot.root.mohash}")


@app.command()
def borders(
    path: Annotated[Path, typer.Argument(help="File to scan")],
    window: Annotated[int | None, typer.Option("--window", help="Rolling window size")] = None,
    zero_bits: Annotated[int | None, typer.Option("--zero-bits", help="Mask width (0-32)")] = None,
) -> None:
    """List content-defined chunk borders of a file."""
    cfg = _get_config()
    window_size = window if window is not None else cfg.chunking.window_size
    bits = zero_bits if zero_bits is not None else cfg.chunking.zero_bits
    try:
        with open(path, "rb") as f:
            offsets = find_borders(f, window_size, bits, cfg.scan.read_size)
    except (OSError, HashError) as e:
        raise _fail(str(e))

    size = path.stat().st_size
    for start, end in chunk_ranges(offsets, size):
        typer.echo(f"{start}\t{end}\t{end - start}")
    typer.echo(f"borders={len(offsets)}")


@app.command()
def verify(
    path: Annotated[Path, typer.Argument(help="Local file")],
    hashes_json: Annotated[Path, typer.Argument(help="Saved server hash response (JSON)")],
) -> None:
    """Compare a local file against a server hash response."""
    cfg = _get_config()
    try:
        remote = FileHash.from_response(json.loads(hashes_json.read_text()))
        # Rejects responses with a level missing
        remote.hashes()
        with open(path, "rb") as f:
            local_tree = Hashes.calculate(f, cfg.scan.read_size)
    except json.JSONDecodeError as e:
        raise _fail(f"invalid JSON in {hashes_json}: {e}")
    except (OSError, HashError) as e:
        raise _fail(str(e))

    local_chash = local_tree.top_hash()
    records = [r for r in remote.blocks() if r.level == 0]
    covered = {r.block for r in records}
    mismatched = local_tree.mismatched_records(records)
    # Local blocks the response says nothing about can't be vouched for
    mismatched += [b for b in range(len(local_tree[0])) if b not in covered]

    # A response without a chash is judged on its blocks alone
    blocks_only = remote.chash.is_zero() and bool(records) and not mismatched
    if remote.chash == local_chash or blocks_only:
        rprint(f"[green]OK[/green] chash={local_chash}")
        return
    rprint(f"[red]chash differs[/red] local={local_chash} remote={remote.chash}")
    if mismatched:
        rprint(f"[red]{len(mismatched)} block(s) differ[/red]")
    typer.echo(f"ranges={format_ranges(ranges_from_blocks(mismatched))}")
    raise typer.Exit(code=1)


@config_app.command("init")
def config_init(
    path: Annotated[str, typer.Argument(help="Where to write the config")] = "hdhash.yaml",
) -> None:
    """Write a default hdhash.yaml."""
    dest = Path(path)
    if dest.exists():
        raise _fail(f"{dest} already exists")
    dest.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Wrote[/green] {dest}")


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""
    typer.echo(_get_config().model_dump_json(indent=2))


if __name__ == "__main__":
    app()
