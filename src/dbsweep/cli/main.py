# src/dbsweep/cli/main.py
from __future__ import annotations

"""
dbsweep CLI

Thin layer: parse args → resolve config → SweepRunner → print via reporters.
"""

import json
from typing import List, Literal, Optional

import typer

from dbsweep.cli.commands import config as config_cmd
from dbsweep.cli.constants import (
    EXIT_CONFIG_ERROR,
    EXIT_FATAL_DISPATCH,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_SWEEP_FAILED,
)
from dbsweep.config.loader import ConfigLoader
from dbsweep.config.settings import resolve_effective_config
from dbsweep.engine.runner import SweepRunner
from dbsweep.errors import ConfigError, DbsweepError, FatalDispatchError, format_error_for_cli
from dbsweep.logging import configure_logging
from dbsweep.reporters.rich_reporter import render_report
from dbsweep.version import VERSION

app = typer.Typer(help="dbsweep: fan-out rule checks over metastore databases")


def _print_version(value: Optional[bool]) -> None:
    if value:
        typer.echo(f"dbsweep {VERSION}")
        raise typer.Exit(code=0)


@app.callback()
def _main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show the dbsweep version and exit.",
        callback=_print_version,
        is_eager=True,
    )
) -> None:
    """dbsweep: fan-out rule checks over metastore databases."""


config_cmd.register(app)


@app.command("run")
def run(
    config: str = typer.Argument(..., help="Path to the sweep YAML file."),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", "-o", help="Directory for report files (overrides config/env)."
    ),
    dbs: Optional[List[str]] = typer.Option(
        None, "--db", help="Process only these databases (repeatable; skips the listing query)."
    ),
    include: Optional[str] = typer.Option(
        None, "--include", help="Keep only databases whose name fully matches this regex."
    ),
    exclude: Optional[str] = typer.Option(
        None, "--exclude", help="Drop databases whose name fully matches this regex."
    ),
    process: Optional[List[str]] = typer.Option(
        None, "--process", "-p", help="Run only these process ids (repeatable)."
    ),
    test_sql: bool = typer.Option(
        False, "--test-sql", help="Test the listing queries and exit without dispatching."
    ),
    parallelism: Optional[int] = typer.Option(
        None, "--parallelism", "-j", help="Worker threads (overrides config/env)."
    ),
    output_format: Literal["rich", "json"] = typer.Option(
        "rich", "--output-format", help="Output format."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging and verbose errors."),
) -> None:
    """
    Sweep every configured process: list databases, fan out, check locations.
    """
    configure_logging(verbose=verbose, force=True)

    try:
        cfg = resolve_effective_config(
            ConfigLoader.from_path(config),
            {
                "output_dir": output_dir,
                "parallelism": parallelism,
                "dbs_override": dbs or None,
                "include_regex": include,
                "exclude_regex": exclude,
                "test_sql": True if test_sql else None,
                "processes": process or None,
            },
        )
        report = SweepRunner(cfg).run()
        if output_format == "json":
            typer.echo(json.dumps(report.to_dict(), indent=2))
        else:
            render_report(report)
        raise typer.Exit(code=EXIT_SUCCESS if report.ok else EXIT_SWEEP_FAILED)

    except typer.Exit:
        raise

    except (FileNotFoundError, ConfigError) as e:
        if verbose:
            typer.secho(f"[CONFIG_ERROR] {format_error_for_cli(e)}", fg=typer.colors.RED, err=True)
        else:
            typer.secho(f"Error: {format_error_for_cli(e)}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)

    except FatalDispatchError as e:
        typer.secho(f"[FATAL] {format_error_for_cli(e)}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_FATAL_DISPATCH)

    except DbsweepError as e:
        typer.secho(f"Error: {format_error_for_cli(e)}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_RUNTIME_ERROR)

    except Exception as e:
        if verbose:
            typer.secho(f"[RUNTIME_ERROR] {repr(e)}", fg=typer.colors.RED, err=True)
        else:
            typer.secho("An unexpected error occurred. Use --verbose for details.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_RUNTIME_ERROR)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
