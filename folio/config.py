"""Configuration management for Folio."""

import json
import os
from pathlib import Path

from pydantic import BaseModel


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    data_dir: str = ""
    public_url: str = ""
    signing_secret: str = ""
    url_ttl_seconds: int = 3600


class ClientConfig(BaseModel):
    api_url: str = "http://localhost:8000"
    owner: str = "local"
    timeout_seconds: float = 10.0


class EditorConfig(BaseModel):
    debounce_seconds: float = 1.0
    init_grace_seconds: float = 0.5
    saved_display_seconds: float = 2.0


class FolioConfig(BaseModel):
    server: ServerConfig = ServerConfig()
    client: ClientConfig = ClientConfig()
    editor: EditorConfig = EditorConfig()


def _config_dir() -> Path:
    home = os.environ.get("FOLIO_HOME")
    if home:
        return Path(home)
    return Path.home() / ".folio"


def _config_path() -> Path:
    return _config_dir() / "config.json"


def data_dir(config: ServerConfig) -> Path:
    """Return the server data directory, defaulting to ~/.folio/data."""
    if config.data_dir:
        return Path(config.data_dir).expanduser()
    return _config_dir() / "data"


def ensure_dirs() -> None:
    """Create the Folio base directory."""
    _config_dir().mkdir(parents=True, exist_ok=True)


def load_config() -> FolioConfig:
    """Load config from ~/.folio/config.json, returning defaults if missing."""
    path = _config_path()
    if not path.exists():
        return FolioConfig()
    text = path.read_text()
    return FolioConfig.model_validate_json(text)


def save_config(config: FolioConfig) -> None:
    """Save config to ~/.folio/config.json."""
    ensure_dirs()
    path = _config_path()
    path.write_text(json.dumps(config.model_dump(), indent=2) + "\n")
