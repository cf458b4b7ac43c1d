"""
Enrollments Module

Student enrollment forms and the registrar review workflow:
1. Basic info and school background saved as independent sections
2. Submission (draft -> pending, once)
3. Registrar status changes, archival by school year and deletion
4. Review queue, archive tabs and dashboard statistics

API Endpoints:
- GET/PUT /enrollment... - Student endpoints (see router.py)
- /admin/enrollments, /admin/archived-enrollments, /admin/stats - Registrar
  endpoints (see admin_router.py)
"""

from .admin_router import router as admin_router
from .router import router

__all__ = ["router", "admin_router"]
