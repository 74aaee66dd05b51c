"""CurveFS admin CLI - topology reconciliation and health checks."""

import logging
import sys

import typer

from curvefs_admin.cli.check import check_app
from curvefs_admin.cli.create import create_app
from curvefs_admin.cli.query import query_app
from curvefs_admin.cli.status import status_app

app = typer.Typer(
    name="curvefs-admin",
    help="Administrative client for CurveFS clusters",
    no_args_is_help=True,
)

# Add command groups
app.add_typer(create_app, name="create")
app.add_typer(check_app, name="check")
app.add_typer(status_app, name="status")
app.add_typer(query_app, name="query")


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every RPC"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
