"""
Configuration and application state management.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import HTTPException

from . import __version__

if TYPE_CHECKING:
    from .store import DocumentStore
    from .vault import SecretVault
    from .mirror import MirrorSyncEngine
    from .feeds import FeedParser

# Load environment variables
load_dotenv()


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


class Config:
    """Application configuration from environment."""
    DATA_DIR: Path = Path(os.getenv("RSS_UTIL_DATA_DIR", "./data"))

    # Installation-scoped value mixed into the vault key.
    # Defaults to the resolved data directory.
    INSTALL_PATH: str = os.getenv("RSS_UTIL_INSTALL_PATH", "")

    APP_VERSION: str = os.getenv("APP_VERSION", __version__)
    PORT: int = int(os.getenv("PORT", "5005"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Background work
    FETCH_ON_STARTUP: bool = _parse_bool(os.getenv("FETCH_ON_STARTUP"), default=True)
    MIRROR_PRUNE_ORPHANS: bool = _parse_bool(os.getenv("MIRROR_PRUNE_ORPHANS"), default=True)

    @classmethod
    def install_path(cls) -> str:
        """Installation-scoped value for key derivation."""
        return cls.INSTALL_PATH or str(cls.DATA_DIR.expanduser().resolve())


config = Config()


class AppState:
    """Shared application state."""
    store: "DocumentStore | None" = None
    vault: "SecretVault | None" = None
    mirror: "MirrorSyncEngine | None" = None
    feed_parser: "FeedParser | None" = None
    schema_version: str | None = None
    refresh_in_progress: bool = False


state = AppState()


def get_store() -> "DocumentStore":
    """Dependency to get the document store."""
    if not state.store:
        raise HTTPException(status_code=500, detail="Document store not initialized")
    return state.store


def get_vault() -> "SecretVault":
    """Dependency to get the secret vault."""
    if not state.vault:
        raise HTTPException(status_code=500, detail="Secret vault not initialized")
    return state.vault


def get_mirror() -> "MirrorSyncEngine":
    """Dependency to get the mirror sync engine."""
    if not state.mirror:
        raise HTTPException(status_code=500, detail="Mirror engine not initialized")
    return state.mirror
