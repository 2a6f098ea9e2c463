"""Decorators for docstore CLI commands."""

import functools
import logging
from typing import Any, Callable

import typer
from rich.console import Console

from .errors import CompileError, DocStoreError, NotFoundError, StorageError

logger = logging.getLogger(__name__)
console = Console()


def handle_store_errors(func: Callable) -> Callable:
    """
    Decorator to handle common store operation errors.

    Centralizes error reporting for:
    - CompileError: invalid condition, projection, sort or update
    - NotFoundError: missing document or store directory
    - StorageError: backend failures
    - General exceptions: unexpected errors
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except CompileError as e:
            console.print(f"[bold red]Error:[/bold red] Invalid query: {e}")
            raise typer.Exit(code=1)
        except (NotFoundError, FileNotFoundError) as e:
            console.print(f"[bold red]Error:[/bold red] Not found: {e}")
            raise typer.Exit(code=1)
        except StorageError as e:
            console.print(f"[bold red]Error:[/bold red] Storage failure: {e}")
            raise typer.Exit(code=1)
        except (DocStoreError, ValueError) as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(code=1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            raise typer.Exit(code=130)
        except (typer.Exit, typer.BadParameter):
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            console.print(f"[bold red]Unexpected error:[/bold red] {e}")
            raise typer.Exit(code=1)

    return wrapper


def require_confirmation(message: str = "Are you sure you want to continue?") -> Callable:
    """
    Decorator to require user confirmation for destructive operations.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            if kwargs.get('yes', False):
                return func(*args, **kwargs)

            console.print(f"[yellow]{message}[/yellow]")
            if not typer.confirm("Continue?"):
                console.print("[red]Operation cancelled[/red]")
                raise typer.Exit(code=0)

            return func(*args, **kwargs)

        return wrapper
    return decorator
