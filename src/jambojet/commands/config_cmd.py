"""CLI commands for inspecting configuration."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from jambojet.config import get_config
from jambojet.utils.output import OutputFormat, print_output

console = Console(stderr=True)
app = typer.Typer(name="config", help="Inspect client configuration.")


def mask_secret(value: str) -> str:
    """First 8 and last 4 characters of a secret."""
    if not value:
        return "NOT SET"
    if len(value) <= 12:
        return "*" * len(value)
    return f"{value[:8]}...{value[-4:]}"


@app.command()
def check(
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
) -> None:
    """Validate the configuration; exits 1 when it is incomplete."""
    config = get_config()
    settings = config.settings

    try:
        base_url = config.base_url
    except ValueError as e:
        console.print(f"[red]✗[/red] {e}")
        base_url = ""

    rows = [
        {"setting": "Base URL", "value": base_url or "NOT SET"},
        {"setting": "Environment", "value": settings.environment},
        {"setting": "Subscription Key", "value": mask_secret(settings.subscription_key)},
        {"setting": "Timeout", "value": f"{settings.timeout:g}s"},
        {"setting": "Retry Attempts", "value": settings.retry_attempts},
        {"setting": "Request Deadline", "value": f"{settings.request_deadline:g}s" if settings.request_deadline else "none"},
        {"setting": "Cache Enabled", "value": "Yes" if settings.cache_enabled else "No"},
        {"setting": "Cache TTL", "value": f"{settings.cache_ttl}s"},
        {"setting": "Cache Prefix", "value": settings.cache_prefix},
        {"setting": "Logging Enabled", "value": "Yes" if settings.log_requests else "No"},
        {"setting": "Log Channel", "value": settings.log_channel},
        {"setting": "Username", "value": settings.username or "NOT SET"},
        {"setting": "Token File", "value": settings.token_file or "in-memory"},
    ]
    print_output(rows, output, title="JamboJet Configuration")

    if not base_url or not settings.subscription_key:
        console.print("[red]Configuration is incomplete. Please check your .env file.[/red]")
        raise typer.Exit(1)

    console.print("[green]✓ Configuration looks good![/green]")
    console.print("[dim]Next step: jambojet auth login[/dim]")
