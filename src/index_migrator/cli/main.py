"""Main Typer application."""

from __future__ import annotations

import typer

app = typer.Typer(
    name="index-migrator",
    help="Resumable bulk migration of CSV datasets into a search index.",
    no_args_is_help=True,
)


@app.command()
def migrate(
    config: str = typer.Option(None, "--config", "-c", help="Path to config YAML"),
    dataset: str = typer.Option(None, "--dataset", "-d", help="Override the CSV dataset path"),
) -> None:
    """Migrate the dataset, resuming from its checkpoint if one exists."""
    from .migrate_cmd import run_migrate

    raise typer.Exit(code=run_migrate(config, dataset))


@app.command()
def create_index(
    config: str = typer.Option(None, "--config", "-c", help="Path to config YAML"),
    recreate: bool = typer.Option(False, "--recreate", help="Delete the index first if it exists"),
) -> None:
    """Create the target index with the generated mapping."""
    from .index_cmd import run_create_index

    raise typer.Exit(code=run_create_index(config, recreate))


@app.command()
def show_mapping(
    config: str = typer.Option(None, "--config", "-c", help="Path to config YAML"),
) -> None:
    """Print the generated index mapping as JSON."""
    from .index_cmd import run_show_mapping

    run_show_mapping(config)


@app.command()
def status(
    config: str = typer.Option(None, "--config", "-c", help="Path to config YAML"),
    dataset: str = typer.Option(None, "--dataset", "-d", help="Override the CSV dataset path"),
) -> None:
    """Show checkpoint progress for the dataset."""
    from .status_cmd import run_status

    raise typer.Exit(code=run_status(config, dataset))


if __name__ == "__main__":
    app()
