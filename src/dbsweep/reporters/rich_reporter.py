# src/dbsweep/reporters/rich_reporter.py
from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table

from dbsweep.engine.runner import RunReport

console = Console()


def report_success(msg: str) -> None:
    console.print(f"[bold green]✅ {msg}[/bold green]")


def report_failure(msg: str) -> None:
    console.print(f"[bold red]❌ {msg}[/bold red]")


def _counter_table(group: str, counters: dict) -> Table:
    table = Table(title=group, show_header=True, header_style="bold")
    table.add_column("Counter")
    table.add_column("Count", justify="right")
    for key, value in counters.items():
        style = "red" if key.endswith(".error") and value else None
        table.add_row(key, f"{value:,}", style=style)
    return table


def render_report(report: RunReport, out: Optional[Console] = None) -> None:
    """Counter tables, dedicated output files, and a one-line verdict."""
    c = out or console

    for dispatch in report.dispatches:
        if dispatch.test_mode:
            if dispatch.test_passed:
                c.print(f"[green]{dispatch.process_id}: SQL test passed[/green]")
            else:
                c.print(f"[red]{dispatch.process_id}: SQL test failed (see error report)[/red]")
            continue
        counters = report.counters.get(dispatch.process_id)
        if counters:
            c.print(_counter_table(dispatch.process_id, counters))
        details = report.output_details.get(dispatch.process_id) or []
        if details:
            c.print("Output files:")
            for line in details:
                c.print(line, markup=False, highlight=False)

    for err in report.task_errors:
        c.print(f"Task error: {err}", style="yellow", markup=False, highlight=False)

    if report.ok:
        c.print(f"[bold green]✅ {report.name}: sweep finished[/bold green]")
    else:
        c.print(f"[bold red]❌ {report.name}: sweep finished with problems[/bold red]")
