"""CLI utilities."""

from pathlib import Path

import click

from lazywild.config.loader import load_config
from lazywild.config.models import LazyWildConfig, LoggingConfig
from lazywild.core.errors import ConfigError
from lazywild.core.logging import configure_logging
from lazywild.index.ops import WildcardService

_CONSOLE_DESTINATIONS = ("stderr", "stdout")


def resolve_root(ctx: click.Context) -> Path:
    """Directory holding the .lazywild/ folder: --root, else the current directory."""
    root = ctx.obj.get("root") if ctx.obj else None
    return (root or Path.cwd()).resolve()


def cli_logging_config(config: LoggingConfig, *, verbose: bool = False) -> LoggingConfig:
    """Logging config for one CLI run.

    Console outputs without a level of their own are held at WARNING so log
    lines stay out of command output. ``verbose`` lifts every output to DEBUG.
    """
    if verbose:
        outputs = [output.model_copy(update={"level": None}) for output in config.outputs]
        return config.model_copy(update={"level": "DEBUG", "outputs": outputs})
    outputs = [
        output.model_copy(update={"level": "WARNING"})
        if output.level is None and output.destination in _CONSOLE_DESTINATIONS
        else output
        for output in config.outputs
    ]
    return config.model_copy(update={"outputs": outputs})


def load_cli_config(root: Path) -> LazyWildConfig:
    """Load configuration and apply its logging section.

    Raises:
        click.ClickException: On invalid configuration.
    """
    try:
        config = load_config(root)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    ctx = click.get_current_context(silent=True)
    verbose = bool(ctx and ctx.obj and ctx.obj.get("verbose"))
    configure_logging(config=cli_logging_config(config.logging, verbose=verbose))
    return config


def open_service(root: Path, *, require_active: bool = True) -> WildcardService:
    """Open a WildcardService for ``root``.

    Raises:
        click.ClickException: If the datadump feature is off and required.
    """
    config = load_cli_config(root)
    if require_active and not config.datadump.is_active:
        if config.datadump.enabled:
            error = ConfigError.missing_required("datadump.folder")
            raise click.ClickException(
                f"{error.message}. Set datadump_folder in {root / '.lazywild' / 'config.yaml'}"
            )
        raise click.ClickException(
            "Datadump is not active. Set datadump_enabled: true and datadump_folder "
            f"in {root / '.lazywild' / 'config.yaml'}"
        )
    return WildcardService(config, root=root).open()
