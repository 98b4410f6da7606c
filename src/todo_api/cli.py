"""Command line entry point: run the API server and manage the database."""

import typer
from rich.console import Console
from rich.panel import Panel

from src.todo_api.runtime.context import get_config

console = Console()

app = typer.Typer(
    help="Todo API server and maintenance commands",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.command()
def serve(
    host: str | None = typer.Option(None, help="Host to bind (defaults to app.host)"),
    port: int | None = typer.Option(None, help="Port to bind (defaults to app.port)"),
    reload: bool = typer.Option(False, help="Enable auto-reload on code changes"),
    log_level: str = typer.Option(
        "info", help="Uvicorn log level (debug, info, warning, error, critical)"
    ),
) -> None:
    """Start the HTTP server with uvicorn."""
    import uvicorn

    config = get_config()
    bind_host = host or config.app.host
    bind_port = port or config.app.port

    console.print(
        Panel.fit(
            f"[bold green]Starting Todo API ({config.app.environment})[/bold green]",
            border_style="green",
        )
    )
    console.print(f"[blue]Listening on:[/blue] http://{bind_host}:{bind_port}")
    console.print("[dim]Press Ctrl+C to stop the server[/dim]")

    uvicorn.run(
        "src.todo_api.api.http.app:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=log_level,
        access_log=False,
    )


@app.command(name="init-db")
def init_db() -> None:
    """Create the identity and task tables if they do not exist."""
    from sqlalchemy.engine import make_url

    from src.todo_api.runtime.init_db import init_db as create_tables

    url = make_url(get_config().database.url).render_as_string(hide_password=True)
    console.print(f"[blue]Initializing database:[/blue] {url}")
    try:
        create_tables()
    except Exception as e:
        console.print(f"[red]❌ Database initialization failed: {e}[/red]")
        raise typer.Exit(1) from e
    console.print("[green]✅ Tables created[/green]")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
