"""lwd index command - build or reload line indexes ahead of use."""

import click

from lazywild.cli.utils import open_service, resolve_root
from lazywild.core.errors import WildcardIndexError
from lazywild.core.progress import format_bytes, pluralize, progress, spinner, status
from lazywild.index.catalog import is_large_file


@click.command()
@click.argument("names", nargs=-1)
@click.pass_context
def index_command(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Warm line indexes for datadump wildcards.

    NAMES are wildcard names (default: every file in the datadump folder).
    Indexes found in the cache are loaded; the rest are scanned and cached.
    """
    root = resolve_root(ctx)
    service = open_service(root)
    try:
        if names:
            entries = []
            for name in names:
                entry = service.resolve(name)
                if entry is None:
                    raise click.ClickException(f"Unknown wildcard: {name}")
                entries.append(entry)
        else:
            entries = service.catalog.entries()

        if not entries:
            status("No datadump files found", style="warning")
            return

        threshold = service.config.datadump.large_file_threshold_bytes
        failed = 0
        scanned_before = service.registry.scan_count
        for entry in progress(entries, desc="Indexing", size=lambda e: e.size_bytes):
            try:
                if is_large_file(entry.size_bytes, threshold):
                    with spinner(f"Indexing {entry.name} ({format_bytes(entry.size_bytes)})"):
                        index = service.get_index(entry.name)
                else:
                    index = service.get_index(entry.name)
            except WildcardIndexError as e:
                failed += 1
                status(f"{entry.name}: {e.message}", style="error")
                continue
            source = "cache" if index.loaded_from_cache else "scan"
            status(f"{entry.name}: {pluralize(index.line_count, 'line')} ({source})")

        scanned = service.registry.scan_count - scanned_before
        ok = len(entries) - failed
        status(
            f"Indexed {pluralize(ok, 'wildcard')}, {scanned} scanned",
            style="success" if not failed else "warning",
        )
        if failed:
            raise click.ClickException(f"{pluralize(failed, 'wildcard')} failed to index")
    finally:
        service.close()
