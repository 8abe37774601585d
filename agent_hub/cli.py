"""
CLI tool for running and inspecting the agent hub.

Provides commands for starting the server and for viewing the effective
configuration.
"""

import logging

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from agent_hub.settings import app_settings
from agent_hub.uvicorn_filters import ExcludeMetricsFilter

typer_app = typer.Typer(
    name="agent-hub",
    help="Agent Hub CLI - Run the hub and inspect its configuration",
    add_completion=False,
)
console = Console()

_SECRET_SETTINGS = {"OPERATOR_PASSWORD"}


@typer_app.command(name="serve")
def serve(
    host: str | None = typer.Option(None, help="Bind address (default: HOST)"),
    port: int | None = typer.Option(None, help="Bind port (default: PORT)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """
    Start the hub with uvicorn.

    Example:
        agent-hub serve --port 3000
    """
    logging.getLogger("uvicorn.access").addFilter(ExcludeMetricsFilter())

    uvicorn.run(
        "agent_hub:application",
        factory=True,
        host=host or app_settings.HOST,
        port=port or app_settings.PORT,
        reload=reload,
        log_config=None,
    )


@typer_app.command(name="config")
def show_config():
    """
    Display the effective settings in a table.

    Secrets are masked.

    Example:
        agent-hub config
    """
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Agent Hub Settings[/bold cyan]",
            border_style="cyan",
        )
    )
    console.print()

    table = Table("Setting", "Value", show_lines=True)

    for name, value in app_settings.model_dump().items():
        if name in _SECRET_SETTINGS and value is not None:
            value = "********"
        table.add_row(name, f"[yellow]{value}[/yellow]")

    console.print(table)

    if app_settings.OPERATOR_PASSWORD is None:
        console.print(
            "[bold red]OPERATOR_PASSWORD is not set: operator API is unauthenticated[/bold red]"
        )


if __name__ == "__main__":
    typer_app()
