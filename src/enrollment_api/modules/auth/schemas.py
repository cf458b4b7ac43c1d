"""Authentication schemas."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

from enrollment_api.modules.users.models import User


def _alias(*names: str) -> Any:
    return Field(default=None, validation_alias=AliasChoices(*names))


class RegisterRequest(BaseModel):
    """Register request. Required fields are checked by the service for clear messages."""

    model_config = ConfigDict(extra="ignore")

    email: EmailStr | None = None
    password: str | None = None
    username: str | None = Field(default=None, max_length=64)
    first_name: str | None = _alias("firstName", "first_name")
    middle_name: str | None = _alias("middleName", "middle_name")
    last_name: str | None = _alias("lastName", "last_name")
    suffix: str | None = None
    contact_no: str | None = _alias("contactNo", "contact_no")


class LoginRequest(BaseModel):
    """Login with either a username or an email address."""

    username: str | None = None
    email: str | None = None
    password: str | None = None

    @property
    def login_id(self) -> str | None:
        return self.username or self.email


class ForgotPasswordRequest(BaseModel):
    email: str | None = None


class ResetPasswordRequest(BaseModel):
    token: str | None = None
    new_password: str | None = _alias("newPassword", "new_password")


class UpdatePasswordRequest(BaseModel):
    current_password: str | None = _alias("currentPassword", "current_password")
    new_password: str | None = _alias("newPassword", "new_password")


class ProfileUpdateRequest(BaseModel):
    """
    Partial profile update.

    Each field accepts its camelCase wire name and the snake_case column name.
    ``name`` is a display name split into first and last name.
    """

    model_config = ConfigDict(extra="ignore")

    username: str | None = Field(default=None, max_length=64)
    first_name: str | None = _alias("firstName", "first_name")
    middle_name: str | None = _alias("middleName", "middle_name")
    last_name: str | None = _alias("lastName", "last_name")
    suffix: str | None = None
    contact_no: str | None = _alias("contactNo", "contact_no")
    profile_picture_url: str | None = _alias(
        "profilePicture", "profilePictureUrl", "profile_picture_url"
    )
    name: str | None = None


# Request field -> users column. Only these columns are writable via profile updates.
PROFILE_FIELD_TO_COLUMN: dict[str, str] = {
    "username": "username",
    "first_name": "first_name",
    "middle_name": "middle_name",
    "last_name": "last_name",
    "suffix": "suffix",
    "contact_no": "contact_no",
    "profile_picture_url": "profile_picture_url",
}


def _check_profile_mapping() -> None:
    unknown_fields = set(PROFILE_FIELD_TO_COLUMN) - set(ProfileUpdateRequest.model_fields)
    unknown_columns = set(PROFILE_FIELD_TO_COLUMN.values()) - set(User.__table__.columns.keys())
    if unknown_fields or unknown_columns:
        raise RuntimeError(
            f"Profile field mapping is out of date: fields={sorted(unknown_fields)}, "
            f"columns={sorted(unknown_columns)}"
        )


_check_profile_mapping()


def serialize_user(user: User) -> dict[str, Any]:
    """Wire representation of a user."""
    return {
        "uid": str(user.id),
        "email": user.email,
        "username": user.username,
        "firstName": user.first_name,
        "middleName": user.middle_name,
        "lastName": user.last_name,
        "suffix": user.suffix,
        "contactNo": user.contact_no,
        "profilePicture": user.profile_picture_url,
        "role": user.role.value,
        "name": user.full_name,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
        "updatedAt": user.updated_at.isoformat() if user.updated_at else None,
    }
