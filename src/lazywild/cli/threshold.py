"""lwd threshold command - persist the large-file threshold."""

import click

from lazywild.cli.utils import resolve_root
from lazywild.config.loader import user_config_path
from lazywild.config.user_config import save_threshold
from lazywild.core.errors import ConfigError
from lazywild.core.progress import status


@click.command()
@click.argument("megabytes", type=int)
@click.pass_context
def threshold_command(ctx: click.Context, megabytes: int) -> None:
    """Set the size (MB) at which datadump files are read lazily.

    Files below the threshold keep their lines in memory after first use.
    """
    path = user_config_path(resolve_root(ctx))
    try:
        save_threshold(path, megabytes)
    except ConfigError as e:
        raise click.ClickException(e.message) from e
    status(f"Large-file threshold set to {megabytes} MB", style="success")
