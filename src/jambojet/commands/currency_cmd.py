"""CLI commands for currency conversion."""

from __future__ import annotations

from typing import Annotated

import httpx
import typer

from jambojet.client import JamboJetClient
from jambojet.config import get_config
from jambojet.errors import ApiError
from jambojet.factory import build_client
from jambojet.services.currency import CurrencyService
from jambojet.utils.errors import handle_error
from jambojet.utils.output import OutputFormat, print_envelope

app = typer.Typer(name="currency", help="Currency conversion.")


@app.command()
def convert(
    from_currency: Annotated[str, typer.Option("--from", help="Source currency code")],
    to_currency: Annotated[str, typer.Option("--to", help="Target currency code")],
    amount: Annotated[float, typer.Option("--amount", help="Amount to convert")],
    inverted: Annotated[bool, typer.Option("--inverted", help="Use the inverted rate")] = False,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show request details")] = False,
) -> None:
    """Convert an amount between two currencies."""
    client: JamboJetClient | None = None
    try:
        client = build_client(get_config(), verbose=verbose)
        envelope = CurrencyService(client).convert(from_currency, to_currency, amount, inverted=inverted)
        print_envelope(envelope, output, title="Currency Conversion")
    except (ApiError, httpx.HTTPError, ValueError) as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        if client is not None:
            client.close()
