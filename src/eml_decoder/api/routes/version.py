"""
Version information endpoint.
"""

from fastapi import APIRouter

from ...models.api_models import VersionResponse
from ...version import API_VERSION, get_component_versions

router = APIRouter()


@router.get("/version", response_model=VersionResponse)
async def get_version() -> VersionResponse:
    """
    Get API and decoder component versions.

    Returns:
        Version information for debugging
    """
    return VersionResponse(
        api_version=API_VERSION,
        components=get_component_versions(),
    )
