"""
Auth Module

Accounts and sessions for applicants and registrars.

API Endpoints:
- POST /auth/register - Create a student account
- POST /auth/login - Log in with email or username
- POST /auth/forgot-password - Email a reset link (5 per 15 minutes)
- POST /auth/reset-password - Set a new password with a reset token
- POST /auth/update-password - Change password (authenticated)
- GET /auth/me - Current profile
- PATCH /auth/profile - Partial profile update

Background Jobs (via APScheduler):
- auth_purge_password_reset_tokens: Runs hourly
"""

from .jobs import register_auth_jobs
from .router import router

__all__ = ["router", "register_auth_jobs"]
