"""lwd status command - show configuration, catalog and cache state."""

import json

import click
from rich.table import Table

from lazywild.cli.utils import load_cli_config, resolve_root
from lazywild.config.constants import CACHE_SUFFIX
from lazywild.config.loader import get_cache_dir
from lazywild.core.progress import format_bytes, get_console, status
from lazywild.index.cache import cache_path_for
from lazywild.index.catalog import Catalog, is_large_file


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status_command(ctx: click.Context, as_json: bool) -> None:
    """Show datadump configuration, known wildcards and cache files."""
    root = resolve_root(ctx)
    config = load_cli_config(root)
    datadump = config.datadump
    cache_dir = get_cache_dir(config, root)

    catalog = Catalog(datadump.folder)
    modified: list[str] = []
    if datadump.is_active:
        catalog.scan()
        if datadump.wildcard_dir:
            modified = catalog.modified_placeholders(datadump.wildcard_dir)

    threshold = datadump.large_file_threshold_bytes
    wildcards = [
        {
            "name": entry.name,
            "size_bytes": entry.size_bytes,
            "large": is_large_file(entry.size_bytes, threshold),
            "cached": cache_path_for(cache_dir, entry.key).exists(),
        }
        for entry in catalog.entries()
    ]
    cache_files = sorted(cache_dir.glob(f"*{CACHE_SUFFIX}")) if cache_dir.is_dir() else []
    cache_bytes = sum(p.stat().st_size for p in cache_files)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "active": datadump.is_active,
                    "enabled": datadump.enabled,
                    "folder": datadump.folder,
                    "wildcard_dir": datadump.wildcard_dir,
                    "large_file_threshold_mb": datadump.large_file_threshold_mb,
                    "cache_dir": str(cache_dir),
                    "cache_files": len(cache_files),
                    "cache_bytes": cache_bytes,
                    "wildcards": wildcards,
                    "modified_placeholders": modified,
                }
            )
        )
        return

    click.echo(f"Datadump: {'active' if datadump.is_active else 'inactive'}")
    click.echo(f"Folder: {datadump.folder or '(not set)'}")
    click.echo(f"Large-file threshold: {datadump.large_file_threshold_mb} MB")
    click.echo(f"Cache: {cache_dir} ({len(cache_files)} files, {format_bytes(cache_bytes)})")
    for name in modified:
        status(
            f"Placeholder for {name} was replaced; the host reads that file instead",
            style="warning",
        )

    if not wildcards:
        click.echo("Wildcards: none")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Wildcard", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Mode")
    table.add_column("Cached")
    for item in wildcards:
        table.add_row(
            item["name"],
            format_bytes(item["size_bytes"]),
            "lazy" if item["large"] else "in-memory",
            "yes" if item["cached"] else "no",
        )
    get_console().print(table)
