"""scout search command - rank workspace files against a query."""

import asyncio
from pathlib import Path

import click

from codescout.cli.utils import find_workspace_root
from codescout.config.loader import load_config
from codescout.core.errors import CodeScoutError
from codescout.core.logging import configure_logging
from codescout.core.progress import console_sink, spinner
from codescout.retrieval.orchestrator import RetrievalOrchestrator


@click.command()
@click.argument("query")
@click.option(
    "--root",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root (default: current directory)",
)
@click.option("--glob", "glob_pattern", default=None, help="Glob selecting candidate files")
@click.option("-k", "top_k", type=click.IntRange(min=1), default=None, help="Files to return")
@click.option("--names-only", is_flag=True, help="Print file names instead of file contents")
@click.pass_context
def search_command(
    ctx: click.Context,
    query: str,
    root: Path | None,
    glob_pattern: str | None,
    top_k: int | None,
    names_only: bool,
) -> None:
    """Find the files most relevant to QUERY.

    Prints the selected files wrapped in name/path headers, ready to paste
    into a prompt. Embeddings are cached per workspace, so only files that
    changed since the last search are re-embedded.
    """
    workspace_root = find_workspace_root(root)

    try:
        config = load_config(workspace_root)
        logging_config = config.logging
        if ctx.obj and ctx.obj.get("verbose"):
            logging_config = logging_config.model_copy(update={"level": "DEBUG"})
        configure_logging(config=logging_config)
        if glob_pattern:
            config.retrieval = config.retrieval.model_copy(update={"glob": glob_pattern})
        orchestrator = RetrievalOrchestrator.from_config(
            workspace_root, config, progress=console_sink
        )
        with spinner("Searching workspace"):
            result = asyncio.run(orchestrator.find_relevant_files(query, top_k))
    except CodeScoutError as e:
        raise click.ClickException(e.message) from e

    if names_only:
        for name in result.file_names:
            click.echo(name)
    elif result.context:
        click.echo(result.context)
