"""
Enrollment Router

Student-facing endpoints. The enrollment always belongs to the caller; the
user id comes from the bearer token, never from the request.

Endpoints:
- GET /enrollment - Caller's enrollment, or null
- PUT /enrollment/basic-info - Save the basic-info section
- PUT /enrollment/school-background - Save the school-background section
- PUT /enrollment/submit - Submit for review (draft -> pending)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_api.core.auth import CurrentUser, get_current_user
from enrollment_api.core.database import get_db
from enrollment_api.modules.enrollments import service
from enrollment_api.modules.enrollments.schemas import BasicInfoRequest, SchoolBackgroundRequest
from enrollment_api.modules.shared import ok

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Get My Enrollment")
async def get_enrollment(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Return the caller's enrollment, or ``data: null`` if none was started."""
    return ok(await service.get_enrollment(db, user.id))


@router.put("/basic-info", summary="Save Basic Info")
async def save_basic_info(
    data: BasicInfoRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Save the basic-info section.

    Required: lastName, firstName, birthdate, guardianName, guardianContact.
    The school-background section is left unchanged.
    """
    basic_info = await service.save_basic_info(db, user.id, data)
    return ok({"basicInfo": basic_info})


@router.put("/school-background", summary="Save School Background")
async def save_school_background(
    data: SchoolBackgroundRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Save the school-background section (up to 50 entries per level)."""
    school_background = await service.save_school_background(db, user.id, data)
    return ok({"school_background": school_background})


@router.put("/submit", summary="Submit Enrollment")
async def submit_enrollment(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Submit the caller's enrollment for registrar review.

    Raises:
        400: No enrollment yet, already submitted, or archived
    """
    return ok(await service.submit_enrollment(db, user.id))
