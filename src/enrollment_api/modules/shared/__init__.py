"""
Shared building blocks for feature modules.
"""

from enrollment_api.modules.shared.models import BaseModel
from enrollment_api.modules.shared.schemas import error_body, ok

__all__ = ["BaseModel", "error_body", "ok"]
