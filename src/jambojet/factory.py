"""Wire a token store, client and authenticator together."""

from __future__ import annotations

from jambojet.auth import Authenticator
from jambojet.client import JamboJetClient
from jambojet.config import Config
from jambojet.token_store import TokenStore


def build_client(config: Config, verbose: bool = False, persist_token: bool = True) -> JamboJetClient:
    """Create a client with its authenticator attached.

    Args:
        config: Loaded configuration.
        verbose: Log every request and response.
        persist_token: Keep the session token in ``settings.token_file`` so
            later processes reuse it.

    Returns:
        A ready client; its authenticator is ``client.authenticator``.
    """
    token_file = config.settings.token_file if persist_token else ""
    store = TokenStore(token_file or None)
    client = JamboJetClient(config, store, verbose=verbose)
    Authenticator(client, store)
    return client


def get_authenticator(client: JamboJetClient) -> Authenticator:
    """The client's authenticator, attaching one if missing."""
    return client.authenticator or Authenticator(client)
