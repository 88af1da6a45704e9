"""
Miscellaneous routes: health check.
"""

from fastapi import APIRouter

from ..config import config, state

router = APIRouter(tags=["misc"])


@router.get("/status")
async def health_check() -> dict:
    """API health check."""
    return {
        "status": "ok",
        "version": config.APP_VERSION,
        "schema_version": state.schema_version,
        "mirror_enabled": state.mirror is not None,
        "refresh_in_progress": state.refresh_in_progress,
    }
