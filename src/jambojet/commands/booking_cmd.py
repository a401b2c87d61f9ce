"""CLI commands for booking retrieval."""

from __future__ import annotations

from typing import Annotated

import httpx
import typer

from jambojet.client import JamboJetClient
from jambojet.config import get_config
from jambojet.errors import ApiError
from jambojet.factory import build_client
from jambojet.services.booking import BookingService
from jambojet.utils.errors import handle_error
from jambojet.utils.output import OutputFormat, print_envelope

app = typer.Typer(name="booking", help="Retrieve bookings.")


@app.command()
def get(
    record_locator: Annotated[str, typer.Argument(help="Six-character record locator")],
    history: Annotated[bool, typer.Option("--history", help="Show the booking history instead")] = False,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.JSON,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show request details")] = False,
) -> None:
    """Retrieve a booking by record locator."""
    client: JamboJetClient | None = None
    try:
        client = build_client(get_config(), verbose=verbose)
        service = BookingService(client)
        if history:
            envelope = service.get_history(record_locator)
        else:
            envelope = service.get_by_record_locator(record_locator)
        print_envelope(envelope, output, title=f"Booking {record_locator.upper()}")
    except (ApiError, httpx.HTTPError, ValueError) as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        if client is not None:
            client.close()
