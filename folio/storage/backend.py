"""The server's handle on its stores, created lazily from config."""

from __future__ import annotations

import logging
import secrets

from folio.config import ServerConfig, data_dir, load_config
from folio.storage.content import ContentStore
from folio.storage.metadata import MetadataStore
from folio.storage.signing import UrlSigner

logger = logging.getLogger("folio.backend")


class Backend:
    def __init__(self, config: ServerConfig) -> None:
        root = data_dir(config)
        self.config = config
        self.metadata = MetadataStore(root / "notebooks")
        self.content = ContentStore(root / "content")
        secret = config.signing_secret
        if not secret:
            secret = secrets.token_hex(32)
            logger.info("No signing secret configured; signed URLs will not survive a restart")
        self.signer = UrlSigner(secret, config.url_ttl_seconds)


_backend: Backend | None = None


def get_backend(config: ServerConfig | None = None) -> Backend:
    """Get the module-level singleton backend."""
    global _backend  # noqa: PLW0603
    if _backend is None:
        if config is None:
            config = load_config().server
        _backend = Backend(config)
    return _backend


def reset_backend() -> None:
    """Reset the singleton (for testing)."""
    global _backend  # noqa: PLW0603
    _backend = None
