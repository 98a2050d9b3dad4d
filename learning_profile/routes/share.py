"""
Read-only profile access through sharing links
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from learning_profile.services.consolidation_service import ProfileConsolidator
from learning_profile.services.projection_service import view_projector
from learning_profile.utils.dependencies import get_consolidator

router = APIRouter(prefix="/api/share", tags=["Sharing"])


@router.get("/{token}")
def get_shared_profile(
    token: str,
    context: Optional[str] = Query(default=None),
    consolidator: ProfileConsolidator = Depends(get_consolidator)
):
    """Profile addressed by its sharing token, consolidated view unless a context is given"""
    profile = consolidator.get_shared_profile(token)
    return {"profile": view_projector.project(profile, context)}
