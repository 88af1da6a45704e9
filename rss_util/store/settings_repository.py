"""
Settings repository - operations for the single settings document.

Holds the encrypted API key, feature flags and data mirror configuration.
A missing key means the feature-specific default.
"""

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .collections import SETTINGS_FILE
from .document_store import DocumentStore, StoreResult

if TYPE_CHECKING:
    from ..vault import SecretVault

FEATURE_FLAGS_KEY = "featureFlags"
ENCRYPTED_API_KEY = "encryptedApiKey"
MIRROR_DIRECTORY_KEY = "mirrorDirectory"
MIRROR_STRUCTURED_KEY = "mirrorStructured"

DATA_MIRROR_FLAG = "dataMirror"
KNOWN_FEATURE_FLAGS = ("aiArticleSummary", DATA_MIRROR_FLAG, "calendarExtraction")


@dataclass
class MirrorSettings:
    """Mirror configuration as read at the start of a sync pass."""
    enabled: bool
    directory: str | None
    structured: bool


def _settings_dict(value) -> dict:
    if not isinstance(value, dict):
        raise ValueError("settings collection is not an object")
    return value


class SettingsRepository:
    """Repository for application settings."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get_all(self) -> StoreResult:
        return await self._store.read(SETTINGS_FILE)

    async def save_all(self, settings: dict) -> StoreResult:
        return await self._store.write(SETTINGS_FILE, settings)

    async def _get(self, key: str, default=None) -> StoreResult:
        result = await self._store.read(SETTINGS_FILE)
        if not result.success:
            return result
        settings = result.data if isinstance(result.data, dict) else {}
        return StoreResult.ok(settings.get(key, default))

    async def _set(self, key: str, value) -> StoreResult:
        def mutate(settings):
            settings = _settings_dict(settings)
            if value is None:
                settings.pop(key, None)
            else:
                settings[key] = value
            return settings

        return await self._store.update(SETTINGS_FILE, mutate)

    # ─────────────────────────────────────────────────────────────
    # Feature flags
    # ─────────────────────────────────────────────────────────────

    async def get_feature_flags(self) -> StoreResult:
        """All feature flags; known flags missing from storage are saved as False."""
        result = await self._get(FEATURE_FLAGS_KEY)
        if not result.success:
            return result
        flags = result.data if isinstance(result.data, dict) else {}
        if all(name in flags for name in KNOWN_FEATURE_FLAGS):
            return StoreResult.ok(flags)

        def mutate(settings):
            settings = _settings_dict(settings)
            stored = settings.get(FEATURE_FLAGS_KEY)
            if not isinstance(stored, dict):
                stored = {}
            for name in KNOWN_FEATURE_FLAGS:
                stored.setdefault(name, False)
            settings[FEATURE_FLAGS_KEY] = stored
            return settings

        updated = await self._store.update(SETTINGS_FILE, mutate)
        if not updated.success:
            return updated
        return StoreResult.ok(updated.data[FEATURE_FLAGS_KEY])

    async def is_enabled(self, flag_name: str) -> bool:
        result = await self._get(FEATURE_FLAGS_KEY)
        flags = result.data if result.success and isinstance(result.data, dict) else {}
        return flags.get(flag_name) is True

    async def set_feature_flag(self, flag_name: str, enabled: bool) -> StoreResult:
        def mutate(settings):
            settings = _settings_dict(settings)
            flags = settings.get(FEATURE_FLAGS_KEY)
            if not isinstance(flags, dict):
                flags = {}
            flags[flag_name] = bool(enabled)
            settings[FEATURE_FLAGS_KEY] = flags
            return settings

        return await self._store.update(SETTINGS_FILE, mutate)

    # ─────────────────────────────────────────────────────────────
    # Encrypted API key
    # ─────────────────────────────────────────────────────────────

    async def get_secret(self, vault: "SecretVault") -> StoreResult:
        """Decrypted API key, or None when unset or undecryptable."""
        result = await self._get(ENCRYPTED_API_KEY)
        if not result.success:
            return result
        # scrypt is CPU-bound; keep it off the event loop
        loop = asyncio.get_running_loop()
        plaintext = await loop.run_in_executor(None, vault.decrypt, result.data)
        return StoreResult.ok(plaintext)

    async def set_secret(self, vault: "SecretVault", api_key: str | None) -> StoreResult:
        """Encrypt and store the API key. An empty value clears it."""
        if not api_key:
            return await self._set(ENCRYPTED_API_KEY, None)

        loop = asyncio.get_running_loop()
        sealed = await loop.run_in_executor(None, vault.encrypt, api_key)
        if sealed is None:
            return StoreResult.fail("Failed to encrypt API key")
        return await self._set(ENCRYPTED_API_KEY, sealed)

    # ─────────────────────────────────────────────────────────────
    # Data mirror
    # ─────────────────────────────────────────────────────────────

    async def get_mirror_directory(self) -> StoreResult:
        result = await self._get(MIRROR_DIRECTORY_KEY)
        if result.success and not result.data:
            return StoreResult.ok(None)
        return result

    async def set_mirror_directory(self, directory: str | None) -> StoreResult:
        """Set the mirror directory. An empty value clears it."""
        return await self._set(MIRROR_DIRECTORY_KEY, directory or None)

    async def get_mirror_structured(self) -> StoreResult:
        result = await self._get(MIRROR_STRUCTURED_KEY, False)
        if not result.success:
            return result
        return StoreResult.ok(result.data is True)

    async def set_mirror_structured(self, structured: bool) -> StoreResult:
        return await self._set(MIRROR_STRUCTURED_KEY, bool(structured))

    async def get_mirror_settings(self) -> StoreResult:
        """Flag, directory and output mode from a single settings read."""
        result = await self._store.read(SETTINGS_FILE)
        if not result.success:
            return result
        settings = result.data if isinstance(result.data, dict) else {}
        flags = settings.get(FEATURE_FLAGS_KEY)
        flags = flags if isinstance(flags, dict) else {}
        directory = settings.get(MIRROR_DIRECTORY_KEY)
        return StoreResult.ok(MirrorSettings(
            enabled=flags.get(DATA_MIRROR_FLAG) is True,
            directory=directory if isinstance(directory, str) and directory else None,
            structured=settings.get(MIRROR_STRUCTURED_KEY) is True,
        ))
