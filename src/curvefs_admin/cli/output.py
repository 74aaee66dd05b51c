"""Shared CLI plumbing: settings overrides, output formats and exit codes.

Per command conventions:
- asyncio.run() executes the async core from sync typer commands
- Rich Table for formatted output, JSON for automation
- ConfigurationError exits 2, any unsuccessful outcome exits 1
"""

import asyncio
import json
from collections.abc import Coroutine, Sequence
from enum import Enum
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from curvefs_admin.config import Settings, settings
from curvefs_admin.exceptions import ConfigurationError
from curvefs_admin.report import Issue, Outcome

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)

_OUTCOME_STYLES = {
    Outcome.NO_CHANGES: "green",
    Outcome.CONVERGED: "green",
    Outcome.HEALTHY: "green",
    Outcome.PLANNED: "cyan",
    Outcome.DEGRADED: "yellow",
}


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


def resolve_settings(**overrides: Any) -> Settings:
    """Settings with every non-None CLI option applied on top."""
    update = {name: value for name, value in overrides.items() if value is not None}
    if not update:
        return settings
    return settings.model_copy(update=update)


def split_ints(value: str | None, option: str) -> list[int]:
    """
    Parse a comma separated list of integers.

    Raises:
        ConfigurationError: If an element is not an integer.
    """
    if not value:
        return []
    items = [item.strip() for item in value.split(",") if item.strip()]
    problems = [f"{option}: {item} is not an integer" for item in items if not item.isdigit()]
    if problems:
        raise ConfigurationError(problems)
    return [int(item) for item in items]


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine, turning configuration errors into exit code 2."""
    try:
        return asyncio.run(coro)
    except ConfigurationError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(2) from e


def make_table(title: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> Table:
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    return table


def finish(
    output: OutputFormat,
    data: dict[str, Any],
    table: Table,
    outcome: Outcome,
    issue: Issue | None,
) -> None:
    """Print the report and exit with the outcome's exit code."""
    if issue is not None:
        data["most_important_issue"] = issue.to_dict()

    if output == OutputFormat.JSON:
        print(json.dumps(data, indent=2, default=str))
    else:
        console.print(table)
        style = _OUTCOME_STYLES.get(outcome, "red")
        console.print(f"Outcome: [{style}]{outcome.value}[/{style}]")
        if issue is not None:
            console.print(f"Most important issue: {issue.entity}: {issue.message}")

    raise typer.Exit(0 if outcome.success else 1)
