"""
Settings routes: encrypted API key, feature flags and the data mirror.
"""

from fastapi import APIRouter

from ..schemas import (
    FeatureFlagRequest,
    MirrorDirectoryRequest,
    MirrorFormatRequest,
    SecretRequest,
    StoreResponse,
)
from .deps import MirrorDep, SettingsRepoDep, VaultDep

router = APIRouter(tags=["settings"])


# ─────────────────────────────────────────────────────────────
# Encrypted API key
# ─────────────────────────────────────────────────────────────

@router.get("/secret")
async def get_secret(settings: SettingsRepoDep, vault: VaultDep) -> StoreResponse:
    """Decrypted API key, or null when not configured."""
    return StoreResponse.from_result(await settings.get_secret(vault))


@router.put("/secret")
async def set_secret(
    request: SecretRequest,
    settings: SettingsRepoDep,
    vault: VaultDep
) -> StoreResponse:
    """Encrypt and store the API key. An empty key clears it."""
    result = await settings.set_secret(vault, request.api_key)
    return StoreResponse(success=result.success, error=result.error)


# ─────────────────────────────────────────────────────────────
# Feature flags
# ─────────────────────────────────────────────────────────────

@router.get("/feature-flags")
async def get_feature_flags(settings: SettingsRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await settings.get_feature_flags())


@router.put("/feature-flags/{flag_name}")
async def set_feature_flag(
    flag_name: str,
    request: FeatureFlagRequest,
    settings: SettingsRepoDep
) -> StoreResponse:
    result = await settings.set_feature_flag(flag_name, request.enabled)
    return StoreResponse(success=result.success, error=result.error)


# ─────────────────────────────────────────────────────────────
# Data mirror
# ─────────────────────────────────────────────────────────────

@router.get("/mirror/directory")
async def get_mirror_directory(settings: SettingsRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await settings.get_mirror_directory())


@router.put("/mirror/directory")
async def set_mirror_directory(
    request: MirrorDirectoryRequest,
    settings: SettingsRepoDep
) -> StoreResponse:
    """Set or clear the mirror directory; the settings write triggers a sync."""
    result = await settings.set_mirror_directory(request.directory)
    return StoreResponse(success=result.success, error=result.error)


@router.get("/mirror/structured")
async def get_mirror_structured(settings: SettingsRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await settings.get_mirror_structured())


@router.put("/mirror/structured")
async def set_mirror_structured(
    request: MirrorFormatRequest,
    settings: SettingsRepoDep
) -> StoreResponse:
    result = await settings.set_mirror_structured(request.structured)
    return StoreResponse(success=result.success, error=result.error)


@router.post("/mirror/sync")
async def sync_mirror(mirror: MirrorDep) -> StoreResponse:
    """Run a mirror pass now and report its outcome."""
    result = await mirror.sync_now()
    error = None
    if not result.success:
        error = result.message or "; ".join(result.errors) or "Mirror sync failed"
    return StoreResponse(
        success=result.success,
        data={
            "skipped": result.skipped,
            "mode": result.mode,
            "written": result.written,
            "failed": result.failed,
            "removed": result.removed,
        },
        error=error,
    )
