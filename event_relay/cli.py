"""
Command line interface for the event relay.

Example:
    event-relay serve --port 3001
    event-relay settings
"""

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from event_relay.settings import app_settings
from event_relay.uvicorn_filters import build_log_config

typer_app = typer.Typer(
    name="event-relay",
    help="Event relay - forward trigger requests to live WebSocket connections",
    add_completion=False,
)
console = Console()


@typer_app.command()
def serve(
    host: str = typer.Option(app_settings.HOST, help="Interface to bind"),
    port: int = typer.Option(app_settings.PORT, help="Port to listen on"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """
    Run the relay under uvicorn.

    Startup failures (e.g. the port is taken) exit with a non-zero status.
    """
    console.print(
        Panel.fit(
            f"[bold magenta]Event relay running at http://{host}:{port}[/bold magenta]",
            border_style="magenta",
        )
    )
    uvicorn.run(
        "event_relay:application",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=build_log_config(),
    )


@typer_app.command()
def settings():
    """Display the effective configuration."""
    table = Table("Setting", "Value", title="Event relay settings")
    for name, value in app_settings.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)


if __name__ == "__main__":
    typer_app()
