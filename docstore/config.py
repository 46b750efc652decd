from __future__ import annotations
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from shared.log import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("resources") / "config.json"


class StartupIOFailure(Exception):
    """Raised when the configuration file cannot be opened or parsed."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        super().__init__(f"Cannot load config {path}: {reason}")
        self.path = Path(path)
        self.reason = reason


@dataclass(frozen=True)
class AppCredentials:
    user: str = ""
    password: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AppCredentials":
        data = data or {}
        return cls(user=data.get("user", ""), password=data.get("password", ""))


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Connection settings read from the JSON config file:
    {
      "apiEndpoint": "https://docstore.example.com",
      "appCredentials": {"user": "...", "password": "..."},
      "restEndpoint": "https://docstore.example.com/api/v1"   (optional)
    }
    """
    api_endpoint: str = ""
    app_credentials: AppCredentials = field(default_factory=AppCredentials)
    rest_endpoint: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionConfig":
        return cls(
            api_endpoint=data.get("apiEndpoint", ""),
            app_credentials=AppCredentials.from_dict(data.get("appCredentials")),
            rest_endpoint=data.get("restEndpoint"),
        )

    @property
    def rest_base_url(self) -> str:
        """Base URL for REST calls, ``restEndpoint`` falling back to ``apiEndpoint``."""
        return (self.rest_endpoint or self.api_endpoint).rstrip("/")


def default_config_path() -> Path:
    return Path(os.getenv("DOCSTORE_CONFIG", str(DEFAULT_CONFIG_PATH)))


def load_config(path: Union[str, Path]) -> ConnectionConfig:
    """
    Parse the config file at ``path``. All-or-nothing: any failure raises
    StartupIOFailure and nothing is returned.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise StartupIOFailure(path, e.strerror or str(e)) from e
    except json.JSONDecodeError as e:
        raise StartupIOFailure(path, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise StartupIOFailure(path, "top-level value must be a JSON object")

    config = ConnectionConfig.from_dict(data)
    logger.debug("Loaded config from %s", path, extra={"endpoint": config.api_endpoint})
    return config
