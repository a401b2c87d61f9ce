"""JamboJet CLI, entry point.

Command-line access to the JamboJet (Navitaire NSK) API with session
token management, retries and response caching.
"""

from __future__ import annotations

import logging

import typer

from jambojet.commands.auth_cmd import app as auth_app
from jambojet.commands.availability_cmd import app as availability_app
from jambojet.commands.booking_cmd import app as booking_app
from jambojet.commands.config_cmd import app as config_app
from jambojet.commands.currency_cmd import app as currency_app
from jambojet.commands.request_cmd import app as request_app
from jambojet.commands.resources_cmd import app as resources_app

app = typer.Typer(
    name="jambojet",
    help="CLI tool for the JamboJet airline API.",
    no_args_is_help=True,
)

# Register command groups
app.add_typer(auth_app, name="auth")
app.add_typer(config_app, name="config")
app.add_typer(request_app, name="request")
app.add_typer(availability_app, name="availability")
app.add_typer(booking_app, name="booking")
app.add_typer(currency_app, name="currency")
app.add_typer(resources_app, name="resources")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """JamboJet CLI: sessions, availability, bookings and reference data."""
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


if __name__ == "__main__":
    app()
