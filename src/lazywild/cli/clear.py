"""lwd clear command - remove cached line indexes."""

import shutil
from pathlib import Path

import click
import questionary
from rich.console import Console

from lazywild.cli.utils import load_cli_config, resolve_root
from lazywild.config.constants import CACHE_SUFFIX
from lazywild.config.loader import get_cache_dir


def clear_cache(cache_dir: Path, *, yes: bool = False) -> bool:
    """Remove the index cache directory.

    Returns True if cleared successfully, False if cancelled or nothing to clear.
    """
    console = Console(stderr=True)

    if not cache_dir.exists():
        console.print("[yellow]Nothing to clear[/yellow] - no index cache found")
        return False

    count = len(list(cache_dir.glob(f"*{CACHE_SUFFIX}")))
    console.print("\n[bold]The following will be permanently deleted:[/bold]\n")
    console.print(f"  [cyan]•[/cyan] {cache_dir} ({count} index files)")
    console.print()

    if not yes:
        answer = questionary.select(
            "Indexes will be rebuilt on next use. Continue?",
            choices=[
                questionary.Choice("No, keep the cache", value=False),
                questionary.Choice("Yes, delete the cache", value=True),
            ],
            style=questionary.Style(
                [
                    ("question", "bold"),
                    ("highlighted", "fg:red bold"),
                    ("selected", "fg:red"),
                ]
            ),
        ).ask()

        if not answer:
            console.print("[dim]Cancelled[/dim]")
            return False

    try:
        shutil.rmtree(cache_dir)
    except OSError as e:
        console.print(f"  [red]✗[/red] Failed to remove {cache_dir}: {e}")
        return False

    console.print(f"  [green]✓[/green] Removed {cache_dir}")
    return True


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def clear_command(ctx: click.Context, yes: bool) -> None:
    """Delete all cached line indexes.

    Source files and placeholders are not touched.
    """
    root = resolve_root(ctx)
    cache_dir = get_cache_dir(load_cli_config(root), root)

    if not clear_cache(cache_dir, yes=yes):
        if not yes:
            return  # Cancelled or nothing to clear
        if cache_dir.exists():
            raise click.ClickException("Failed to clear index cache")
