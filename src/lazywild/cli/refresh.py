"""lwd refresh command - rescan the datadump folder."""

import click

from lazywild.cli.utils import open_service, resolve_root
from lazywild.core.progress import pluralize, status


@click.command()
@click.pass_context
def refresh_command(ctx: click.Context) -> None:
    """Forget loaded indexes, rescan the datadump folder and sync placeholders.

    Cache files are kept; indexes are rebuilt or reloaded on first use.
    """
    root = resolve_root(ctx)
    service = open_service(root)
    try:
        result = service.refresh()
    finally:
        service.close()

    if not result.success:
        raise click.ClickException(result.error or "Refresh failed")
    status(result.message or "Refresh complete", style="success")
    if result.placeholders_created:
        status(f"Created {pluralize(result.placeholders_created, 'placeholder')}")
