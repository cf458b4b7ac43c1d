"""
Enrollment Request Schemas

The enrollment form is lenient: values of any JSON type are accepted and
coerced to trimmed strings, and malformed school entries are blanked rather
than rejected. Required basic-info fields are checked by the service so the
error names them.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from enrollment_api.modules.enrollments.merge import to_text


class BasicInfoRequest(BaseModel):
    """PUT /enrollment/basic-info"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    last_name: str = Field(default="", alias="lastName")
    first_name: str = Field(default="", alias="firstName")
    middle_name: str = Field(default="", alias="middleName")
    suffix: str = ""
    birthdate: str = ""
    birth_place: str = Field(default="", alias="birthPlace")
    gender: str = ""
    mother_name: str = Field(default="", alias="motherName")
    father_name: str = Field(default="", alias="fatherName")
    guardian_name: str = Field(default="", alias="guardianName")
    guardian_contact: str = Field(default="", alias="guardianContact")

    # Only a string changes the stored value; anything else keeps it
    student_type: Any = Field(default=None, alias="studentType")

    @field_validator(
        "last_name",
        "first_name",
        "middle_name",
        "suffix",
        "birthdate",
        "birth_place",
        "gender",
        "mother_name",
        "father_name",
        "guardian_name",
        "guardian_contact",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return to_text(value)

    def document_values(self) -> dict[str, str]:
        """Field values keyed by their camelCase document names."""
        return self.model_dump(by_alias=True, exclude={"student_type"})


class SchoolBackgroundRequest(BaseModel):
    """PUT /enrollment/school-background. Levels are sanitized by the service."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    elementary: Any = Field(default_factory=list)
    junior_high: Any = Field(default_factory=list, alias="juniorHigh")
    high_school: Any = Field(default_factory=list, alias="highSchool")
    student_type: Any = Field(default=None, alias="studentType")

    def levels(self) -> dict[str, Any]:
        return {
            "elementary": self.elementary,
            "juniorHigh": self.junior_high,
            "highSchool": self.high_school,
        }


class SetStatusRequest(BaseModel):
    """PATCH /admin/enrollments/{id}/status"""

    status: Any = None


class ArchiveRequest(BaseModel):
    """PATCH /admin/enrollments/{id}/archive"""

    school_year: Any = Field(
        default=None,
        validation_alias=AliasChoices("school_year", "schoolYear"),
    )
