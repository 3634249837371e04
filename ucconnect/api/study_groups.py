"""
Study Groups API Router.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ucconnect.api.auth import get_current_identity
from ucconnect.api.deps import get_study_group_service
from ucconnect.api.schemas import StudyGroupResponse
from ucconnect.services.auth_service import Identity
from ucconnect.services.study_group_service import StudyGroupService

router = APIRouter(prefix="/study-groups", tags=["study-groups"])


@router.get("", response_model=list[StudyGroupResponse])
async def list_study_groups(
    q: Optional[str] = Query(None, max_length=200, description="Search name, course or description"),
    identity: Identity = Depends(get_current_identity),
    groups: StudyGroupService = Depends(get_study_group_service),
):
    """List study groups, optionally filtered by a search term."""
    return [StudyGroupResponse.model_validate(g) for g in groups.list_study_groups(q)]
