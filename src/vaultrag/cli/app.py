# src/vaultrag/cli/app.py
"""Command-line interface for vaultrag.

Each command:
1. Parses args (via Typer)
2. Resolves configuration (vaultrag.yaml, .env, VAULTRAG_* variables)
3. Calls the indexer or retriever
4. Renders results with Rich
"""

from __future__ import annotations

import asyncio
import logging
import os

try:
    import typer
    from rich.console import Console
    from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
    from rich.table import Table
except ImportError as e:
    raise SystemExit(
        "CLI requires additional dependencies.\nInstall with: pip install vaultrag[cli]"
    ) from e

from vaultrag import __version__
from vaultrag.config import (
    DEFAULT_DB_NAME,
    ConfigError,
    VaultRagConfig,
    create_embedding_client,
    create_indexer,
    create_store,
    get_config,
    load_config,
    load_env_file,
    resolve_data_dir,
    resolve_index_backend,
    validate_config,
)
from vaultrag.exceptions import (
    AllFilesFailedError,
    BatchFailedError,
    ConfigurationError,
    IndexingError,
)
from vaultrag.models import EmbeddingStats, IndexProgress, IndexResult, SearchScope
from vaultrag.retriever import Retriever

app = typer.Typer(
    name="vaultrag",
    help="vaultrag - Incremental vector index for Markdown vaults.",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"vaultrag {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log indexing details to stderr.",
    ),
) -> None:
    """vaultrag - Incremental vector index for Markdown vaults."""
    load_env_file()
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _print_error(message: str, plain: bool, suggestion: str | None = None) -> None:
    if plain:
        console.print(f"Error: {message}")
        if suggestion:
            console.print(suggestion)
    else:
        console.print(f"[red]Error: {message}[/red]")
        if suggestion:
            console.print(f"[dim]{suggestion}[/dim]")


def _resolve_config(
    vault_dir: str | None,
    data_dir: str | None,
    config_file: str | None,
    plain: bool,
) -> VaultRagConfig:
    """Load configuration or exit with status 1."""
    for warning in validate_config(load_config(config_file)):
        if plain:
            console.print(f"Warning: {warning}")
        else:
            console.print(f"[yellow]Warning: {warning}[/yellow]")

    config = get_config(vault_dir=vault_dir, data_dir=data_dir, config_path=config_file)
    if isinstance(config, ConfigError):
        _print_error(config.message, plain, config.suggestion)
        raise typer.Exit(1)
    return config


@app.command()
def index(
    vault_dir: str = typer.Argument(None, help="Vault directory (default: from config or cwd)"),
    data_dir: str = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Data directory (default: from config)",
    ),
    config_file: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
    reindex_all: bool = typer.Option(
        False,
        "--reindex-all",
        help="Drop the model's index and embed every file again",
    ),
    plain: bool = typer.Option(
        False,
        "--plain",
        help="Plain output (no colors/formatting)",
    ),
    no_progress: bool = typer.Option(
        False,
        "--no-progress",
        help="Disable progress bars",
    ),
) -> None:
    """Index new and modified Markdown files of a vault."""
    config = _resolve_config(vault_dir, data_dir, config_file, plain)
    try:
        indexer = create_indexer(config)
    except FileNotFoundError as e:
        _print_error(str(e), plain)
        raise typer.Exit(1) from e
    model = create_embedding_client(config)
    options = config.settings.build_index_options(reindex_all=reindex_all)
    show_progress = not plain and not no_progress and console.is_terminal

    try:
        if show_progress:
            with Progress(
                SpinnerColumn(),
                TextColumn("[bold]{task.fields[stage]:>12}", justify="right"),
                BarColumn(bar_width=30),
                TextColumn("{task.completed}/{task.total}", style="cyan"),
                TextColumn("{task.description}", style="dim"),
                console=console,
            ) as progress:
                task = progress.add_task("", total=None, stage="Embedding")

                def on_progress(update: IndexProgress) -> None:
                    progress.update(
                        task,
                        total=update.total_chunks,
                        completed=update.completed_chunks,
                        stage="Rate limited" if update.waiting_for_rate_limit else "Embedding",
                        description=f"{update.total_files} file(s)",
                    )

                result = asyncio.run(indexer.update_vault_index(model, options, on_progress))
        else:
            result = asyncio.run(indexer.update_vault_index(model, options))
    except ConfigurationError as e:
        _print_error(str(e), plain, e.suggestion)
        raise typer.Exit(1) from e
    except AllFilesFailedError as e:
        _print_error(str(e), plain)
        console.print(IndexResult(failed_files=e.failures).diagnostic(), markup=False)
        raise typer.Exit(1) from e
    except BatchFailedError as e:
        _print_error(str(e), plain)
        console.print(IndexResult(failed_chunks=e.failures).diagnostic(), markup=False)
        raise typer.Exit(1) from e
    except IndexingError as e:
        _print_error(str(e), plain)
        raise typer.Exit(1) from e
    finally:
        indexer.store.close()

    _render_index_result(result, plain)


def _render_index_result(result: IndexResult, plain: bool) -> None:
    """Render index result to console."""
    if result.files_indexed == 0 and not result.deleted_paths and not result.has_failures:
        if plain:
            console.print("Index is up to date.")
        else:
            console.print("[dim]Index is up to date.[/dim]")
    elif plain:
        console.print(f"Indexed {result.files_indexed} files ({result.chunks_embedded} chunks)")
        if result.deleted_paths:
            console.print(f"Removed {len(result.deleted_paths)} deleted files")
    else:
        console.print(
            f"[green]Indexed {result.files_indexed} files "
            f"({result.chunks_embedded}/{result.chunks_total} chunks)[/green]"
        )
        if result.deleted_paths:
            console.print(f"[dim]Removed {len(result.deleted_paths)} deleted files[/dim]")

    if result.has_failures:
        console.print(result.diagnostic(), markup=False)
    if result.save_error:
        _print_error(f"Index could not be saved: {result.save_error}", plain)


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to search for"),
    data_dir: str = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Data directory (default: from config)",
    ),
    config_file: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
    limit: int = typer.Option(
        None,
        "--limit",
        "-k",
        help="Maximum number of results",
    ),
    min_similarity: float = typer.Option(
        None,
        "--min-similarity",
        "-m",
        help="Minimum cosine similarity",
    ),
    files: list[str] = typer.Option(
        None,
        "--file",
        "-f",
        help="Restrict to a file (repeatable)",
    ),
    folders: list[str] = typer.Option(
        None,
        "--folder",
        help="Restrict to a folder (repeatable)",
    ),
    plain: bool = typer.Option(
        False,
        "--plain",
        help="Plain output (no colors/formatting)",
    ),
) -> None:
    """Search the index for chunks similar to a query."""
    config = _resolve_config(None, data_dir, config_file, plain)
    scope = SearchScope(files=files or [], folders=folders or [])
    options = config.settings.build_search_options(
        scope=None if scope.is_empty else scope,
        min_similarity=min_similarity,
        limit=limit,
    )

    store = create_store(config.data_dir, config.index_backend)
    retriever = Retriever(
        store,
        create_embedding_client(config),
        retry_policy=config.settings.build_retry_policy(),
    )
    try:
        results = asyncio.run(retriever.search(query, options))
    except ConfigurationError as e:
        _print_error(str(e), plain, e.suggestion)
        raise typer.Exit(1) from e
    finally:
        store.close()

    if not results:
        if plain:
            console.print("No results found.")
        else:
            console.print("[yellow]No results found.[/yellow]")
        raise typer.Exit(0)

    for i, r in enumerate(results, 1):
        location = f"{r.path}:{r.metadata.start_line}-{r.metadata.end_line}"
        preview = r.content[:100].replace("\n", " ")
        if len(r.content) > 100:
            preview += "..."
        if plain:
            console.print(f"  [{i}] {location} (similarity: {r.similarity:.3f})")
            if r.metadata.header_path:
                console.print(f"      {r.metadata.header_path}")
            console.print(f"      {preview}", markup=False)
        else:
            console.print(
                f"  [{i}] [cyan]{location}[/cyan] [dim](similarity: {r.similarity:.3f})[/dim]"
            )
            if r.metadata.header_path:
                console.print(f"      [yellow]{r.metadata.header_path}[/yellow]")
            console.print(f"      {preview}", style="dim", markup=False)


def _read_stats(data_dir: str, index_backend: str) -> list[EmbeddingStats]:
    store = create_store(data_dir, index_backend)
    try:
        return store.get_embedding_stats()
    finally:
        store.close()


@app.command()
def stats(
    data_dir: str = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Data directory (default: from config)",
    ),
    config_file: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
    plain: bool = typer.Option(
        False,
        "--plain",
        help="Plain output (no colors/formatting)",
    ),
) -> None:
    """Show embedding statistics per model."""
    config = load_config(config_file)
    effective_data_dir = resolve_data_dir(config, data_dir)

    if not os.path.exists(os.path.join(effective_data_dir, DEFAULT_DB_NAME)):
        rows: list[EmbeddingStats] = []
    else:
        rows = _read_stats(effective_data_dir, resolve_index_backend(config))

    if not rows:
        if plain:
            console.print("No embeddings found.")
        else:
            console.print("[dim]No embeddings found. Run 'vaultrag index' first.[/dim]")
        raise typer.Exit(0)

    if plain:
        console.print(f"Data directory: {effective_data_dir}")
        for row in rows:
            console.print(
                f"  {row.model} ({row.dimension}d): {row.row_count} chunks, "
                f"{row.file_count} files, {row.total_data_bytes} bytes"
            )
    else:
        table = Table(title=f"Embeddings ({effective_data_dir})")
        table.add_column("Model", style="cyan")
        table.add_column("Dimension", justify="right")
        table.add_column("Chunks", justify="right", style="green")
        table.add_column("Files", justify="right")
        table.add_column("Bytes", justify="right", style="dim")

        for row in rows:
            table.add_row(
                row.model,
                str(row.dimension),
                str(row.row_count),
                str(row.file_count),
                str(row.total_data_bytes),
            )

        console.print(table)


@app.command()
def clear(
    data_dir: str = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Data directory (default: from config)",
    ),
    config_file: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Skip confirmation prompt",
    ),
    plain: bool = typer.Option(
        False,
        "--plain",
        help="Plain output (no colors/formatting)",
    ),
) -> None:
    """Delete every embedding of the configured model."""
    config = _resolve_config(None, data_dir, config_file, plain)
    model = create_embedding_client(config)

    if not force and not typer.confirm(f"Delete all embeddings for {model.id}?"):
        console.print("Cancelled.")
        raise typer.Exit(0)

    try:
        indexer = create_indexer(config)
    except FileNotFoundError as e:
        _print_error(str(e), plain)
        raise typer.Exit(1) from e
    try:
        indexer.clear_all_vectors(model)
    finally:
        indexer.store.close()

    if plain:
        console.print(f"Cleared embeddings for {model.id}")
    else:
        console.print(f"[green]Cleared embeddings for {model.id}[/green]")
