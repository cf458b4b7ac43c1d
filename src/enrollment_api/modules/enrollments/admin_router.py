"""
Enrollment Admin Router

API endpoints for registrars to review enrollments.
All endpoints require a valid JWT with the admin role.

Endpoints:
- GET /admin/enrollments - Active enrollments, optionally by status
- GET /admin/enrollments/{id} - Enrollment detail with account info
- PATCH /admin/enrollments/{id}/status - Set status
- PATCH /admin/enrollments/{id}/archive - Archive under a school year
- DELETE /admin/enrollments/{id} - Delete an enrollment
- GET /admin/archived-enrollments - Archived enrollments, optionally by school year
- GET /admin/archived-enrollments/school-years - School years with archives
- GET /admin/stats - Dashboard statistics
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_api.core.auth import CurrentUser, get_current_admin_user
from enrollment_api.core.database import get_db
from enrollment_api.modules.enrollments import service
from enrollment_api.modules.enrollments.schemas import ArchiveRequest, SetStatusRequest
from enrollment_api.modules.shared import ok

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Review queue
# ============================================


@router.get("/enrollments", summary="List Enrollments")
async def list_enrollments(
    status: str | None = Query(None, description="Filter by status"),
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Non-archived enrollments, submitted ones first (newest submission first),
    then drafts by last update.
    """
    return ok(await service.admin_list_enrollments(db, status))


@router.get("/enrollments/{enrollment_id}", summary="Get Enrollment Detail")
async def get_enrollment_detail(
    enrollment_id: UUID,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return ok(await service.admin_get_enrollment_detail(db, enrollment_id))


@router.patch("/enrollments/{enrollment_id}/status", summary="Set Enrollment Status")
async def set_enrollment_status(
    enrollment_id: UUID,
    data: SetStatusRequest,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Set the status to pending, approved, rejected or draft.

    Raises:
        400: Invalid status, or the enrollment is archived
        404: Enrollment not found
    """
    return ok(await service.admin_set_status(db, enrollment_id, data.status, admin.id))


@router.patch("/enrollments/{enrollment_id}/archive", summary="Archive Enrollment")
async def archive_enrollment(
    enrollment_id: UUID,
    data: ArchiveRequest,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Archive an enrollment under a school year (e.g. "2025-2026").
    Archived enrollments are read-only.
    """
    return ok(
        await service.admin_archive_enrollment(db, enrollment_id, data.school_year, admin.id)
    )


@router.delete("/enrollments/{enrollment_id}", summary="Delete Enrollment")
async def delete_enrollment(
    enrollment_id: UUID,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await service.admin_delete_enrollment(db, enrollment_id, admin.id)
    return ok(message="Enrollment deleted")


# ============================================
# Archive
# ============================================


@router.get("/archived-enrollments/school-years", summary="List Archive School Years")
async def list_school_years(
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return ok(await service.admin_list_school_years(db))


@router.get("/archived-enrollments", summary="List Archived Enrollments")
async def list_archived_enrollments(
    school_year: str | None = Query(None, description="Filter by school year"),
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return ok(await service.admin_list_archived(db, school_year))


# ============================================
# Stats
# ============================================


@router.get("/stats", summary="Dashboard Statistics")
async def get_stats(
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Counts by status and gender, plus daily activity for the last 30 days."""
    return ok(await service.admin_get_stats(db))
