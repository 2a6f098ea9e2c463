import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.traceback import install

from . import decorators
from .collection import Collection
from .config import load_config, update_config
from .decorators import handle_store_errors, require_confirmation
from .storage import STORAGE_BACKENDS, FileStorage, create_storage

# Initialize Rich Traceback for better error messages
install(show_locals=False)

console = Console()

# Configure logging to use Rich's RichHandler
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)]
)
logger = logging.getLogger("docstore")

app = typer.Typer(help="Query and update document stores.")

# The memory backend forgets everything when the process exits
FILE_BACKENDS = sorted(
    name for name, cls in STORAGE_BACKENDS.items() if issubclass(cls, FileStorage)
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose mode"),
    color: Optional[bool] = typer.Option(None, "--color/--no-color", help="Colored output (default from config)"),
):
    """
    docstore - document storage with MongoDB-style queries and updates.

    Conditions, projections, sort orders, update operators and documents are
    given as JSON text. The store directory and backend default to the values
    set with 'docstore config'.
    """
    config = load_config()

    use_color = config.cli.color if color is None else color
    console.no_color = not use_color
    decorators.console.no_color = not use_color

    if verbose or config.cli.verbose:
        logger.setLevel(logging.DEBUG)
        console.print("[bold green]Verbose mode enabled.[/bold green]")


def _parse_json(value: Optional[str], name: str) -> Any:
    """Parse a JSON option, reporting bad input as a usage error."""
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"invalid JSON: {e}", param_hint=name)


def _parse_document(value: str, name: str) -> Dict[str, Any]:
    document = _parse_json(value, name)
    if not isinstance(document, dict) or not document:
        raise typer.BadParameter("expected a non-empty JSON object", param_hint=name)
    return document


def _open(store: Optional[Path], backend: Optional[str], create: bool = False) -> Collection:
    """Open the store, filling in the directory and backend from config."""
    config = load_config()

    backend = backend or config.storage.backend
    if backend not in FILE_BACKENDS:
        raise typer.BadParameter(
            f"{backend!r} is not a file backend (choose from {', '.join(FILE_BACKENDS)})",
            param_hint="--backend",
        )

    if store is None:
        if not config.storage.path:
            console.print("[red]Error: No store directory specified[/red]")
            console.print("[yellow]Either pass --store or set a default with:[/yellow]")
            console.print("[yellow]  docstore config --store-path ~/my-store[/yellow]")
            raise typer.Exit(code=1)
        store = Path(config.storage.path)

    return Collection(create_storage(backend, path=store, create=create))


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _print_documents(documents: List[Dict[str, Any]], output_format: str) -> None:
    if output_format == "json":
        typer.echo(json.dumps(documents, indent=2, ensure_ascii=False))
        return

    if not documents:
        console.print("[yellow]No documents found[/yellow]")
        return

    columns: List[str] = []
    for document in documents:
        for key in document:
            if key not in columns:
                columns.append(key)

    table = Table(title="Documents")
    for column in columns:
        table.add_column(column, overflow="fold")
    for document in documents:
        table.add_row(*(_cell(document.get(column)) for column in columns))
    console.print(table)


STORE_OPTION = typer.Option(
    None, "--store", "-d",
    help="Path to the store directory; default from config",
)
BACKEND_OPTION = typer.Option(
    None, "--backend", "-b",
    help=f"Storage backend ({', '.join(FILE_BACKENDS)}); default from config",
)
FORMAT_OPTION = typer.Option("table", "--format", "-f", help="Output format: table or json")


@app.command()
@handle_store_errors
def index(
    store: Optional[Path] = STORE_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
):
    """List every identifier in the store."""
    for identifier in _open(store, backend).index():
        typer.echo(identifier)


@app.command()
@handle_store_errors
def get(
    identifier: str = typer.Argument(..., help="Document identifier"),
    store: Optional[Path] = STORE_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
):
    """Print one document as JSON."""
    document = _open(store, backend).read(identifier)
    typer.echo(json.dumps(document, indent=2, ensure_ascii=False))


@app.command()
@handle_store_errors
def put(
    identifier: str = typer.Argument(..., help="Document identifier"),
    document: str = typer.Argument(..., help="Document as a JSON object"),
    store: Optional[Path] = STORE_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
):
    """
    Store a document under an identifier, replacing any previous one.

    Example:
        docstore put sicp '{"title": "SICP", "year": 1985}' --store ./books
    """
    content = _parse_document(document, "DOCUMENT")
    _open(store, backend, create=True).write(identifier, content)
    console.print(f"[green]✓ Stored {identifier}[/green]")


@app.command()
@handle_store_errors
def erase(
    identifier: str = typer.Argument(..., help="Document identifier"),
    store: Optional[Path] = STORE_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
):
    """Delete one document."""
    _open(store, backend).erase(identifier)
    console.print(f"[green]✓ Erased {identifier}[/green]")


@app.command()
@handle_store_errors
def find(
    condition: Optional[str] = typer.Option(None, "--condition", "-c", help="Condition as JSON"),
    projection: Optional[str] = typer.Option(None, "--projection", "-p", help="Projection as JSON"),
    sort: Optional[str] = typer.Option(None, "--sort", "-s", help='Sort order as JSON, e.g. \'{"year": -1}\''),
    offset: int = typer.Option(0, "--offset", help="Number of results to skip"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum number of results; default is the configured page size"),
    show_all: bool = typer.Option(False, "--all", help="Return every result, ignoring the page size"),
    with_id: bool = typer.Option(False, "--with-id", help="Embed identifiers as _id"),
    output_format: str = FORMAT_OPTION,
    store: Optional[Path] = STORE_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
):
    """
    Query documents.

    Examples:
        docstore find -c '{"language": "en"}' -s '{"year": -1}' -n 10
        docstore find -p '{"title": 1}' --format json --store ./books
    """
    cursor = _open(store, backend).find(
        _parse_json(condition, "--condition"),
        _parse_json(projection, "--projection"),
        id_field="_id" if with_id else None,
    )
    sort_spec = _parse_json(sort, "--sort")
    if sort_spec is not None:
        cursor.sort(sort_spec)
    if offset:
        cursor.offset(offset)
    if limit is None and not show_all:
        limit = load_config().cli.page_size
    if limit is not None:
        cursor.limit(limit)

    _print_documents(cursor.to_array(), output_format)


@app.command()
@handle_store_errors
def count(
    condition: Optional[str] = typer.Option(None, "--condition", "-c", help="Condition as JSON"),
    store: Optional[Path] = STORE_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
):
    """Count documents matching a condition."""
    typer.echo(_open(store, backend).count(_parse_json(condition, "--condition")))


@app.command()
@handle_store_errors
def update(
    condition: str = typer.Argument(..., help="Condition as JSON"),
    operators: str = typer.Argument(..., help="Update operators as JSON"),
    single: bool = typer.Option(False, "--single", help="Update the first match only"),
    store: Optional[Path] = STORE_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
):
    """
    Apply update operators to matching documents.

    Example:
        docstore update '{"language": "en"}' '{"$push": {"tags": "english"}}'
    """
    updated = _open(store, backend).update(
        _parse_json(condition, "CONDITION"),
        _parse_json(operators, "OPERATORS"),
        {"multi": not single},
    )
    console.print(f"[green]✓ Updated {updated} document(s)[/green]")


@app.command()
@handle_store_errors
def modify(
    condition: str = typer.Argument(..., help="Condition as JSON"),
    operators: str = typer.Argument(..., help="Update operators as JSON"),
    sort: Optional[str] = typer.Option(None, "--sort", "-s", help="Sort order as JSON"),
    old: bool = typer.Option(False, "--old", help="Print the document as it was before the update"),
    store: Optional[Path] = STORE_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
):
    """Update the first matching document and print it."""
    document = _open(store, backend).find_and_modify(
        _parse_json(condition, "CONDITION"),
        _parse_json(sort, "--sort"),
        _parse_json(operators, "OPERATORS"),
        {"new": not old},
    )
    if document is None:
        console.print("[yellow]No matching document[/yellow]")
        return
    typer.echo(json.dumps(document, indent=2, ensure_ascii=False))


@app.command()
@handle_store_errors
@require_confirmation("This will permanently erase the matching documents.")
def remove(
    condition: Optional[str] = typer.Option(None, "--condition", "-c", help="Condition as JSON"),
    single: bool = typer.Option(False, "--single", help="Erase the first match only"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    store: Optional[Path] = STORE_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
):
    """Erase documents matching a condition (all documents without one)."""
    removed = _open(store, backend).remove(
        _parse_json(condition, "--condition"),
        {"single": single},
    )
    console.print(f"[green]✓ Removed {removed} document(s)[/green]")


@app.command(name="config")
def show_config(
    set_backend: Optional[str] = typer.Option(None, "--backend", help="Set the default storage backend"),
    set_store_path: Optional[str] = typer.Option(None, "--store-path", help="Set the default store directory"),
    set_verbose: Optional[bool] = typer.Option(None, "--cli-verbose/--no-cli-verbose", help="Enable verbose output by default"),
    set_color: Optional[bool] = typer.Option(None, "--cli-color/--no-cli-color", help="Enable colored output by default"),
    set_page_size: Optional[int] = typer.Option(None, "--page-size", min=1, help="Set the default number of results for find"),
):
    """
    View or edit docstore configuration.

    Without options, prints the effective configuration as JSON.

    Examples:
        docstore config --store-path ~/books --backend yaml
        docstore config --page-size 20 --no-cli-color
    """
    if set_backend is not None and set_backend not in FILE_BACKENDS:
        raise typer.BadParameter(
            f"choose from {', '.join(FILE_BACKENDS)}", param_hint="--backend"
        )

    has_settings = any([
        set_backend, set_store_path, set_verbose is not None,
        set_color is not None, set_page_size is not None,
    ])
    if not has_settings:
        typer.echo(json.dumps(load_config().to_dict(), indent=2))
        return

    update_config(
        storage_backend=set_backend,
        storage_path=set_store_path,
        cli_verbose=set_verbose,
        cli_color=set_color,
        cli_page_size=set_page_size,
    )
    console.print("[green]✓ Configuration updated![/green]")


if __name__ == "__main__":
    app()
