"""Config command for dbsweep CLI."""

from __future__ import annotations

import json

import typer
import yaml

from dbsweep.cli.constants import EXIT_CONFIG_ERROR, EXIT_SUCCESS
from dbsweep.config.loader import ConfigLoader
from dbsweep.config.settings import resolve_effective_config
from dbsweep.errors import ConfigError, format_error_for_cli


def register(app: typer.Typer) -> None:
    """Register the config command group with the app."""

    config_app = typer.Typer(help="Inspect sweep configuration.")
    app.add_typer(config_app, name="config")

    @config_app.command("show")
    def show(
        config: str = typer.Argument(..., help="Path to the sweep YAML file."),
        as_json: bool = typer.Option(False, "--json", help="Print JSON instead of YAML."),
    ) -> None:
        """Print the effective configuration (credentials masked)."""
        try:
            cfg = resolve_effective_config(ConfigLoader.from_path(config))
        except (FileNotFoundError, ConfigError) as e:
            typer.secho(f"Error: {format_error_for_cli(e)}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=EXIT_CONFIG_ERROR)

        view = cfg.public_view()
        if as_json:
            typer.echo(json.dumps(view, indent=2, default=str))
        else:
            typer.echo(yaml.safe_dump(view, sort_keys=False).rstrip())
        raise typer.Exit(code=EXIT_SUCCESS)
