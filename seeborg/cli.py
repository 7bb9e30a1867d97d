"""CLI application — Click-based commands for SeeBorg."""

from __future__ import annotations

from pathlib import Path

import click

from seeborg import __version__
from seeborg.config_file import CONFIG_FILENAME, find_config, generate_template


def _resolve_config_path(config_path: Path | None) -> Path | None:
    return config_path if config_path is not None else find_config()


def _load(config_path: Path | None):
    from seeborg.config import load_settings

    path = _resolve_config_path(config_path)
    try:
        return load_settings(path)
    except Exception as e:
        raise click.ClickException(f"Invalid configuration: {e}")


@click.group()
@click.version_option(__version__, prog_name="seeborg")
def cli() -> None:
    """SeeBorg - a Discord bot that learns from its servers."""


@cli.command("run")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help=f"Path to {CONFIG_FILENAME} (default: search standard locations).",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def run_cmd(config_path: Path | None, verbose: bool) -> None:
    """Connect to Discord and run until interrupted."""
    from seeborg.main import configure_logging, run_bot

    configure_logging(verbose=verbose)
    config = _load(config_path)
    if not config.token:
        raise click.ClickException("No token configured. Set SEEBORG_TOKEN or `token` in the config file.")
    run_bot(config)


@cli.group("config")
def config_group() -> None:
    """Inspect SeeBorg configuration (seeborg.toml)."""


@config_group.command("template")
def config_template() -> None:
    """Print an annotated seeborg.toml template."""
    click.echo(generate_template(), nl=False)


@config_group.command("init")
def config_init() -> None:
    """Generate a seeborg.toml template in the current directory."""
    target = Path(CONFIG_FILENAME)
    if target.exists():
        raise click.ClickException(f"{target} already exists")
    target.write_text(generate_template(), encoding="utf-8")
    click.echo(f"Created {target}")


@config_group.command("show")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
)
def config_show(config_path: Path | None) -> None:
    """Show global behavior and every guild/channel override."""
    from rich.console import Console
    from rich.table import Table

    from seeborg.config import BEHAVIOR_KEYS

    config = _load(config_path)
    keys = sorted(BEHAVIOR_KEYS)

    table = Table(title="SeeBorg behavior")
    table.add_column("scope")
    for key in keys:
        table.add_column(key)
    table.add_column("ignored_users")

    def _cell(value: object) -> str:
        return "·" if value is None else str(value)

    table.add_row("global", *[_cell(getattr(config.behavior, k)) for k in keys], ", ".join(config.ignored_users))
    for scope, overrides in (("guild", config.guilds), ("channel", config.channels)):
        for scope_id, override in sorted(overrides.items()):
            table.add_row(
                f"{scope} {scope_id}",
                *[_cell(getattr(override, k)) for k in keys],
                ", ".join(override.ignored_users),
            )

    console = Console()
    path = _resolve_config_path(config_path)
    console.print(f"TOML file: {path or '(none)'}")
    console.print(f"Database path: {config.database_path}  autosave: {config.autosave_period:g}s")
    console.print(table)


def main() -> None:
    cli()
