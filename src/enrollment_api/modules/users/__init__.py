"""
Users module - account storage.
"""

from enrollment_api.modules.users.models import PasswordResetToken, User, UserRole
from enrollment_api.modules.users.repository import UserRepository

__all__ = ["PasswordResetToken", "User", "UserRole", "UserRepository"]
