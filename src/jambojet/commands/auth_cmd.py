"""CLI commands for authentication management."""

from __future__ import annotations

from typing import Annotated

import httpx
import typer
from rich.console import Console

from jambojet.client import JamboJetClient
from jambojet.config import get_config
from jambojet.errors import ApiError
from jambojet.factory import build_client, get_authenticator
from jambojet.utils.errors import handle_error
from jambojet.utils.output import OutputFormat, print_envelope, print_output

console = Console(stderr=True)
app = typer.Typer(name="auth", help="Manage the session token.")


def _status_row(status, label: str) -> dict[str, object]:
    return {
        "status": label,
        "expires_at": str(status.expires_at) if status.expires_at else "N/A",
        "seconds_remaining": status.seconds_remaining or 0,
    }


@app.command()
def login(
    username: Annotated[str | None, typer.Option("--username", "-u", help="Agent username (default: JAMBOJET_USERNAME)")] = None,
    password: Annotated[str | None, typer.Option("--password", "-p", help="Agent password (default: JAMBOJET_PASSWORD)")] = None,
    domain: Annotated[str | None, typer.Option("--domain", "-d", help="Agent domain code")] = None,
    anonymous: Annotated[bool, typer.Option("--anonymous", help="Create an anonymous session")] = False,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show request details")] = False,
) -> None:
    """Create a session token and store it."""
    client: JamboJetClient | None = None
    try:
        config = get_config()
        client = build_client(config, verbose=verbose)
        auth = get_authenticator(client)

        credentials: dict[str, str] = {}
        if not anonymous:
            credentials = dict(config.credentials)
            if username:
                credentials["username"] = username
            if password:
                credentials["password"] = password
            if domain:
                credentials["domain"] = domain

        console.print("Creating session token...", style="yellow")
        auth.create_token(credentials)
        print_output(_status_row(auth.get_status(), "authenticated"), output, title="Authentication")
    except (ApiError, httpx.HTTPError, ValueError) as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        if client is not None:
            client.close()


@app.command()
def status(
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
) -> None:
    """Show the locally stored token status."""
    client: JamboJetClient | None = None
    try:
        client = build_client(get_config())
        token_status = get_authenticator(client).get_status()
        result = {
            "has_token": token_status.has_token,
            "is_expired": token_status.is_expired,
            "expires_at": str(token_status.expires_at) if token_status.expires_at else "N/A",
            "seconds_remaining": token_status.seconds_remaining or 0,
        }
        print_output(result, output, title="Token Status")
    except ValueError as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        if client is not None:
            client.close()


@app.command()
def refresh(
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show request details")] = False,
) -> None:
    """Refresh (or keep alive) the stored session token."""
    client: JamboJetClient | None = None
    try:
        config = get_config()
        client = build_client(config, verbose=verbose)
        auth = get_authenticator(client)

        console.print("Refreshing session token...", style="yellow")
        # Keep-alive when a session is held, otherwise log in again
        credentials = None if auth.is_authenticated() else (config.credentials or None)
        token = auth.refresh_token(credentials)
        label = "refreshed" if token is not None else "kept alive"
        print_output(_status_row(auth.get_status(), label), output, title="Token Refreshed")
    except (ApiError, httpx.HTTPError, ValueError) as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        if client is not None:
            client.close()


@app.command()
def info(
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show request details")] = False,
) -> None:
    """Show the server's view of the current session."""
    client: JamboJetClient | None = None
    try:
        client = build_client(get_config(), verbose=verbose)
        auth = get_authenticator(client)
        auth.ensure_authenticated()
        print_envelope(auth.get_token_info(), output, title="Session")
    except (ApiError, httpx.HTTPError, ValueError) as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        if client is not None:
            client.close()


@app.command()
def logout(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show request details")] = False,
) -> None:
    """Abandon the session and delete the stored token."""
    client: JamboJetClient | None = None
    try:
        client = build_client(get_config(), verbose=verbose)
        get_authenticator(client).logout()
        console.print("[green]Logged out.[/green]")
    except ValueError as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        if client is not None:
            client.close()
