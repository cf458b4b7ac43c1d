"""
Core module - Configuration, database, security, and utilities.
"""

from enrollment_api.core.config import get_settings, settings
from enrollment_api.core.database import Base, Database, create_database, get_db
from enrollment_api.core.redis import close_redis, get_redis, init_redis
from enrollment_api.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "Database",
    "create_database",
    "get_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
]
