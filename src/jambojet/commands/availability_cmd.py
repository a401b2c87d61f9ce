"""CLI commands for flight availability."""

from __future__ import annotations

from typing import Annotated

import httpx
import typer
from rich.console import Console

from jambojet.client import JamboJetClient
from jambojet.config import get_config
from jambojet.errors import ApiError
from jambojet.factory import build_client
from jambojet.services.availability import AvailabilityService
from jambojet.utils.errors import handle_error
from jambojet.utils.output import OutputFormat, print_envelope

console = Console(stderr=True)
app = typer.Typer(name="availability", help="Search flight availability.")


@app.command()
def search(
    origin: Annotated[str, typer.Option("--from", help="Origin station code (e.g. NBO)")],
    destination: Annotated[str, typer.Option("--to", help="Destination station code (e.g. MBA)")],
    depart: Annotated[str, typer.Option("--depart", help="Departure date (YYYY-MM-DD)")],
    return_date: Annotated[str | None, typer.Option("--return", help="Return date (YYYY-MM-DD)")] = None,
    adults: Annotated[int, typer.Option("--adults", help="Number of adult passengers")] = 1,
    currency: Annotated[str | None, typer.Option("--currency", help="Currency code for fares")] = None,
    version: Annotated[int, typer.Option("--api-version", help="Simple search API version (3 or 4)")] = 4,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.JSON,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show request details")] = False,
) -> None:
    """Simple availability search for a one-way or return trip."""
    client: JamboJetClient | None = None
    try:
        client = build_client(get_config(), verbose=verbose)
        console.print(f"Searching {origin.upper()} → {destination.upper()} on {depart}...", style="yellow")
        envelope = AvailabilityService(client).search_simple(
            origin, destination, depart, return_date,
            adults=adults, currency_code=currency, version=version,
        )
        print_envelope(envelope, output, title="Availability")
    except (ApiError, httpx.HTTPError, ValueError) as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        if client is not None:
            client.close()
