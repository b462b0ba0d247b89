"""Configuration schema using Pydantic.

Persisted to ~/.batchrelay/config.json; every field can be overridden from
the environment with the ``BATCHRELAY_`` prefix (``__`` separates nesting).
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelayConfig(BaseModel):
    """Default JSON-RPC endpoint and transport settings."""
    url: str = "http://localhost:8545"
    timeout_s: float = 10.0
    headers: dict[str, str] = Field(default_factory=dict)  # e.g. {"Authorization": "Bearer ..."}
    first_id: int = Field(default=0, ge=0)  # first id handed out by a fresh relay


class LoggingConfig(BaseModel):
    """Loguru output for the CLI."""
    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    file: bool = False  # rotating file under ~/.batchrelay/logs

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


class Config(BaseSettings):
    """Root configuration for batchrelay."""
    relay: RelayConfig = Field(default_factory=RelayConfig)
    endpoints: dict[str, str] = Field(default_factory=dict)  # name -> RPC URL
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="BATCHRELAY_",
        env_nested_delimiter="__",
    )

    def resolve_url(self, endpoint: str | None = None) -> str:
        """Named endpoint URL, a literal URL passed through, or the default relay URL."""
        if not endpoint:
            return self.relay.url
        if endpoint in self.endpoints:
            return self.endpoints[endpoint]
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        raise KeyError(f"unknown endpoint: {endpoint}")
