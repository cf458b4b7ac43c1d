"""
Documents Module

Signed S3 uploads and the document registry.
"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
