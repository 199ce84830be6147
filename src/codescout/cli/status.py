"""scout status command - show the workspace's embedding cache."""

import json
from collections import Counter
from pathlib import Path

import click

from codescout.cli.utils import find_workspace_root, open_store
from codescout.config.loader import load_config
from codescout.core.errors import CodeScoutError
from codescout.core.progress import pluralize


@click.command()
@click.option(
    "--root",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root (default: current directory)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status_command(root: Path | None, as_json: bool) -> None:
    """Show cache location, entry count and embedding models in use."""
    workspace_root = find_workspace_root(root)

    try:
        store = open_store(workspace_root, load_config(workspace_root))
    except CodeScoutError as e:
        raise click.ClickException(e.message) from e

    exists = store.path.exists()
    cache = store.load() if exists else {}
    models = Counter(entry.model for entry in cache.values())

    if as_json:
        click.echo(
            json.dumps(
                {
                    "workspace": str(workspace_root),
                    "cache_path": str(store.path),
                    "exists": exists,
                    "entries": len(cache),
                    "models": dict(models),
                }
            )
        )
        return

    click.echo(f"Workspace: {workspace_root}")
    click.echo(f"Cache: {store.path}{'' if exists else ' (not created yet)'}")
    click.echo(f"Entries: {pluralize(len(cache), 'embedding')}")
    for model, count in models.most_common():
        click.echo(f"  {model}: {count}")
