from fastapi import APIRouter, Depends

from enrollment_api.core.rate_limit import api_rate_limit
from enrollment_api.modules.auth import router as auth_router
from enrollment_api.modules.documents import admin_router as admin_documents_router
from enrollment_api.modules.documents import router as documents_router
from enrollment_api.modules.enrollments import admin_router as admin_enrollments_router
from enrollment_api.modules.enrollments import router as enrollments_router

api_router = APIRouter(dependencies=[Depends(api_rate_limit)])

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(enrollments_router, prefix="/enrollment", tags=["Enrollment"])

api_router.include_router(documents_router, tags=["Documents"])

api_router.include_router(
    admin_enrollments_router,
    prefix="/admin",
    tags=["Admin - Enrollments"],
)

api_router.include_router(
    admin_documents_router,
    prefix="/admin",
    tags=["Admin - Documents"],
)
