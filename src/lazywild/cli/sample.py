"""lwd sample command - draw lines from a datadump wildcard."""

import random

import click

from lazywild.cli.utils import open_service, resolve_root
from lazywild.core.errors import WildcardIndexError
from lazywild.index.models import SampleRequest, SelectionMode


@click.command()
@click.argument("name")
@click.option("--count", "-n", default=1, show_default=True, type=click.IntRange(min=0))
@click.option("--separator", "-s", default=None, help="Joins the picks (config default: ', ')")
@click.option("--seed", type=int, default=None, help="Seeded selection: same seed, same line")
@click.option("--exclude", "-x", multiple=True, help="Value that must not be picked")
@click.pass_context
def sample_command(
    ctx: click.Context,
    name: str,
    count: int,
    separator: str | None,
    seed: int | None,
    exclude: tuple[str, ...],
) -> None:
    """Print COUNT lines sampled from wildcard NAME."""
    root = resolve_root(ctx)
    service = open_service(root)
    try:
        entry = service.resolve(name)
        if entry is None:
            raise click.ClickException(f"Unknown wildcard: {name}")
        request = SampleRequest(
            count=count,
            separator=service.config.sampling.default_separator if separator is None else separator,
            exclude=frozenset(exclude),
            mode=SelectionMode.SEEDED if seed is not None else SelectionMode.RANDOM,
            seed=seed or 0,
        )
        try:
            text = service.sample(entry.name, request, rng=random.Random())
        except WildcardIndexError as e:
            raise click.ClickException(str(e)) from e
        click.echo(text)
    finally:
        service.close()
