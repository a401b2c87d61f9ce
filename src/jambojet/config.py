"""Configuration management for the JamboJet client.

Loads settings from .env / environment variables and environment profiles
(test, staging, production base URLs) from environments.yaml.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from dotenv import load_dotenv


class EnvironmentProfile(BaseModel):
    """Base URL and description of one JamboJet deployment."""
    base_url: str
    description: str = ""


class Settings(BaseModel):
    """Application settings loaded from environment variables."""
    subscription_key: str = Field(default="", description="Ocp-Apim-Subscription-Key value")
    base_url: str = Field(default="", description="Explicit base URL; overrides the environment profile")
    environment: str = Field(default="test", description="Profile name in environments.yaml")
    timeout: float = Field(default=30.0, description="Per-attempt request timeout in seconds")
    retry_attempts: int = Field(default=3, ge=1, description="Maximum attempts per request")
    retry_delay: float = Field(default=1.0, ge=0, description="Base delay for exponential backoff")
    request_deadline: float = Field(default=0.0, ge=0, description="Overall deadline per call, 0 = none")
    retry_rate_limited: bool = Field(default=False, description="Retry 429s after Retry-After")
    cache_enabled: bool = Field(default=True, description="Enable GET response caching")
    cache_ttl: int = Field(default=3600, description="GET response cache TTL in seconds")
    cache_prefix: str = Field(default="jambojet_", description="Cache key prefix")
    log_requests: bool = Field(default=False, description="Log requests and responses")
    log_channel: str = Field(default="jambojet", description="Logger name for request logs")
    username: str = Field(default="", description="Agent username for token creation")
    password: str = Field(default="", description="Agent password for token creation")
    domain: str = Field(default="", description="Agent domain code")
    token_file: str = Field(default="", description="Where to persist the session token")


class Config(BaseModel):
    """Full application configuration."""
    settings: Settings
    environments: dict[str, EnvironmentProfile] = Field(default_factory=dict)

    def get_environment(self, name: str) -> EnvironmentProfile:
        """Get an environment profile by name (test, staging, production)."""
        name = name.lower()
        if name not in self.environments:
            available = ", ".join(sorted(self.environments.keys())) or "none"
            raise ValueError(f"Unknown environment '{name}'. Available: {available}")
        return self.environments[name]

    @property
    def base_url(self) -> str:
        """Explicit base URL, else the active environment's."""
        if self.settings.base_url:
            return self.settings.base_url
        return self.get_environment(self.settings.environment).base_url

    @property
    def credentials(self) -> dict[str, str]:
        """Configured agent credentials, empty when no username is set."""
        if not self.settings.username:
            return {}
        creds = {"username": self.settings.username, "password": self.settings.password}
        if self.settings.domain:
            creds["domain"] = self.settings.domain
        return creds


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (where config/ lives)."""
    current = Path(__file__).resolve().parent
    for parent in [current, *current.parents]:
        if (parent / "config" / "environments.yaml").exists():
            return parent
    # Fallback: cwd
    return Path.cwd()


def _load_environments(project_root: Path) -> dict[str, EnvironmentProfile]:
    """Load environment profiles from environments.yaml, if present."""
    path = project_root / "config" / "environments.yaml"
    if not path.exists():
        return {}

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return {
        name.lower(): EnvironmentProfile(**profile)
        for name, profile in data.get("environments", {}).items()
    }


def _env(*keys: str, default: str = "") -> str:
    """Try multiple env var names, return the first one found."""
    for key in keys:
        val = os.environ.get(key, "")
        if val:
            return val.strip().strip('"')
    return default


def _flag(*keys: str, default: str) -> bool:
    return _env(*keys, default=default).lower() in ("true", "1", "yes")


def _load_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings(
        subscription_key=_env("JAMBOJET_SUBSCRIPTION_KEY"),
        base_url=_env("JAMBOJET_BASE_URL"),
        environment=_env("JAMBOJET_ENVIRONMENT", default="test"),
        timeout=float(_env("JAMBOJET_TIMEOUT", default="30")),
        retry_attempts=int(_env("JAMBOJET_RETRY_ATTEMPTS", default="3")),
        retry_delay=float(_env("JAMBOJET_RETRY_DELAY", default="1.0")),
        request_deadline=float(_env("JAMBOJET_REQUEST_DEADLINE", default="0")),
        retry_rate_limited=_flag("JAMBOJET_RETRY_RATE_LIMITED", default="false"),
        cache_enabled=_flag("JAMBOJET_CACHE_ENABLED", default="true"),
        cache_ttl=int(_env("JAMBOJET_CACHE_TTL", default="3600")),
        cache_prefix=_env("JAMBOJET_CACHE_PREFIX", default="jambojet_"),
        log_requests=_flag("JAMBOJET_LOG_REQUESTS", default="false"),
        log_channel=_env("JAMBOJET_LOG_CHANNEL", default="jambojet"),
        username=_env("JAMBOJET_USERNAME"),
        password=_env("JAMBOJET_PASSWORD"),
        domain=_env("JAMBOJET_DOMAIN"),
        token_file=_env("JAMBOJET_TOKEN_FILE", default=str(Path.home() / ".jambojet" / "token.json")),
    )


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Load and cache the full application configuration."""
    project_root = _find_project_root()

    # Load .env from project root if it exists
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    settings = _load_settings()
    environments = _load_environments(project_root)

    return Config(settings=settings, environments=environments)
