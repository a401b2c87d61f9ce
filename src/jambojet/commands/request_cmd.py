"""Raw API requests through the full retry/refresh pipeline."""

from __future__ import annotations

import json
from typing import Annotated, Any

import httpx
import typer

from jambojet.client import JamboJetClient
from jambojet.config import get_config
from jambojet.errors import ApiError
from jambojet.factory import build_client
from jambojet.utils.errors import handle_error
from jambojet.utils.output import OutputFormat, print_envelope

app = typer.Typer(name="request", help="Send raw requests to any API path.")

DataOption = Annotated[str | None, typer.Option("--data", "-d", help="JSON payload (query params for GET)")]
HeaderOption = Annotated[list[str] | None, typer.Option("--header", "-H", help="Extra header as 'Name: value'")]
OutputOption = Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show request details")]


def parse_data(data: str | None) -> dict[str, Any] | list | None:
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"--data is not valid JSON: {e}")


def parse_headers(headers: list[str] | None) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for raw in headers or []:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Header must look like 'Name: value', got {raw!r}")
        parsed[name.strip()] = value.strip()
    return parsed


def _send(method: str, path: str, data: str | None, header: list[str] | None, output: OutputFormat, verbose: bool) -> None:
    payload = parse_data(data)
    headers = parse_headers(header)
    client: JamboJetClient | None = None
    try:
        client = build_client(get_config(), verbose=verbose)
        envelope = client.request(method, path, payload, headers)
        print_envelope(envelope, output, title=f"{method} {path}")
    except (ApiError, httpx.HTTPError, ValueError) as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        if client is not None:
            client.close()


@app.command("get")
def get_cmd(path: str, data: DataOption = None, header: HeaderOption = None,
            output: OutputOption = OutputFormat.JSON, verbose: VerboseOption = False) -> None:
    """GET a path."""
    _send("GET", path, data, header, output, verbose)


@app.command("post")
def post_cmd(path: str, data: DataOption = None, header: HeaderOption = None,
             output: OutputOption = OutputFormat.JSON, verbose: VerboseOption = False) -> None:
    """POST a JSON body to a path."""
    _send("POST", path, data, header, output, verbose)


@app.command("put")
def put_cmd(path: str, data: DataOption = None, header: HeaderOption = None,
            output: OutputOption = OutputFormat.JSON, verbose: VerboseOption = False) -> None:
    """PUT a JSON body to a path."""
    _send("PUT", path, data, header, output, verbose)


@app.command("patch")
def patch_cmd(path: str, data: DataOption = None, header: HeaderOption = None,
              output: OutputOption = OutputFormat.JSON, verbose: VerboseOption = False) -> None:
    """PATCH a path with a JSON body."""
    _send("PATCH", path, data, header, output, verbose)


@app.command("delete")
def delete_cmd(path: str, data: DataOption = None, header: HeaderOption = None,
               output: OutputOption = OutputFormat.JSON, verbose: VerboseOption = False) -> None:
    """DELETE a path."""
    _send("DELETE", path, data, header, output, verbose)
