"""Configuration loading and Pydantic models for the ApexxCloud SDK."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, model_validator

from apexxcloud.errors import ConfigurationError

DEFAULT_BASE_URL = "https://api.apexxcloud.com"


class ClientConfig(BaseModel):
    """Credentials and defaults shared by every operation of a client.

    Immutable once built. ``region`` and ``default_bucket`` are used whenever
    an operation does not name its own.
    """

    model_config = ConfigDict(frozen=True)

    access_key: str | None = None
    secret_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    region: str | None = None
    default_bucket: str | None = None

    @model_validator(mode="after")
    def _require_credentials(self) -> "ClientConfig":
        if not self.access_key or not self.secret_key:
            raise ConfigurationError()
        return self


def _parse_credentials(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the credentials section from YAML data."""
    if data is None:
        return {}
    return {
        "access_key": data.get("access_key"),
        "secret_key": data.get("secret_key"),
    }


def load_config(path: Path) -> ClientConfig:
    """Load a ClientConfig from a YAML file.

    Expected layout::

        credentials:
          access_key: ...
          secret_key: ...
        region: eu-west-1
        bucket: my-bucket
        base_url: https://api.apexxcloud.com  # optional

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A ClientConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ConfigurationError: If either credential is missing.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    kwargs = _parse_credentials(raw.get("credentials"))
    kwargs["region"] = raw.get("region")
    kwargs["default_bucket"] = raw.get("bucket")
    if raw.get("base_url"):
        kwargs["base_url"] = str(raw["base_url"]).rstrip("/")
    return ClientConfig(**kwargs)
