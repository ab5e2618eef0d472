"""lazywild CLI - lwd command."""

from pathlib import Path

import click

from lazywild.cli.clear import clear_command
from lazywild.cli.index import index_command
from lazywild.cli.refresh import refresh_command
from lazywild.cli.sample import sample_command
from lazywild.cli.status import status_command
from lazywild.cli.threshold import threshold_command
from lazywild.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="lwd")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory holding .lazywild/ (default: current directory)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, root: Path | None) -> None:
    """lazywild - Lazily indexed datadump wildcards."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["root"] = root
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(status_command, name="status")
cli.add_command(index_command, name="index")
cli.add_command(sample_command, name="sample")
cli.add_command(refresh_command, name="refresh")
cli.add_command(clear_command, name="clear")
cli.add_command(threshold_command, name="threshold")


if __name__ == "__main__":
    cli()
