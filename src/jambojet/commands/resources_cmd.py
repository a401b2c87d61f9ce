"""CLI commands for reference data."""

from __future__ import annotations

from typing import Annotated

import httpx
import typer

from jambojet.client import JamboJetClient
from jambojet.config import get_config
from jambojet.errors import ApiError
from jambojet.factory import build_client
from jambojet.services.resources import ResourcesService
from jambojet.utils.errors import handle_error
from jambojet.utils.output import OutputFormat, print_envelope

app = typer.Typer(name="resources", help="Look up stations, countries and currencies.")

ActiveOption = Annotated[bool | None, typer.Option("--active/--all", help="Only active records")]
CultureOption = Annotated[str | None, typer.Option("--culture", help="Culture code (e.g. en-GB)")]
OutputOption = Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show request details")]


def _run(method_name: str, title: str, active: bool | None, culture: str | None,
         output: OutputFormat, verbose: bool) -> None:
    client: JamboJetClient | None = None
    try:
        client = build_client(get_config(), verbose=verbose)
        service = ResourcesService(client)
        envelope = getattr(service, method_name)(active_only=active, culture_code=culture)
        print_envelope(envelope, output, title=title)
    except (ApiError, httpx.HTTPError, ValueError) as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        if client is not None:
            client.close()


@app.command()
def stations(active: ActiveOption = None, culture: CultureOption = None,
             output: OutputOption = OutputFormat.TABLE, verbose: VerboseOption = False) -> None:
    """List stations."""
    _run("list_stations", "Stations", active, culture, output, verbose)


@app.command()
def countries(active: ActiveOption = None, culture: CultureOption = None,
              output: OutputOption = OutputFormat.TABLE, verbose: VerboseOption = False) -> None:
    """List countries."""
    _run("list_countries", "Countries", active, culture, output, verbose)


@app.command()
def currencies(active: ActiveOption = None, culture: CultureOption = None,
               output: OutputOption = OutputFormat.TABLE, verbose: VerboseOption = False) -> None:
    """List currency codes."""
    _run("list_currencies", "Currencies", active, culture, output, verbose)
