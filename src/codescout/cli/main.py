"""CodeScout CLI - scout command."""

import click

from codescout.cli.clear import clear_command
from codescout.cli.search import search_command
from codescout.cli.status import status_command
from codescout.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="scout")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """CodeScout - find the files in a workspace most relevant to a question."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(search_command, name="search")
cli.add_command(clear_command, name="clear")
cli.add_command(status_command, name="status")


if __name__ == "__main__":
    cli()
