"""scout clear command - remove a workspace's embedding cache."""

from pathlib import Path

import click
from rich.console import Console

from codescout.cli.utils import find_workspace_root, open_store
from codescout.config.loader import load_config
from codescout.core.errors import CodeScoutError


@click.command()
@click.option(
    "--root",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root (default: current directory)",
)
def clear_command(root: Path | None) -> None:
    """Delete the cached embeddings of a workspace.

    The next search re-embeds every candidate file.
    """
    console = Console(stderr=True)
    workspace_root = find_workspace_root(root)

    try:
        store = open_store(workspace_root, load_config(workspace_root))
    except CodeScoutError as e:
        raise click.ClickException(e.message) from e

    if not store.path.exists():
        console.print("[yellow]Nothing to clear[/yellow] - no cache for this workspace")
        return

    try:
        store.clear()
    except OSError as e:
        raise click.ClickException(f"Failed to remove {store.path}: {e}") from e
    console.print(f"  [green]✓[/green] Removed {store.path}")
