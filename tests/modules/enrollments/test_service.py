"""
Unit tests for the student-facing enrollment service.

These tests cover:
- Saving basic info (validation, studentType resolution, column-level write)
- Saving school background (sanitization, optional studentType merge)
- Reading the caller's enrollment
- Submitting (draft -> pending once)
"""

from unittest.mock import AsyncMock, patch

import pytest

from enrollment_api.core.exceptions import ConflictError, ValidationError
from enrollment_api.modules.enrollments.models import EnrollmentStatus
from enrollment_api.modules.enrollments.schemas import BasicInfoRequest, SchoolBackgroundRequest
from enrollment_api.modules.enrollments.service import (
    AlreadySubmittedError,
    EnrollmentArchivedError,
    EnrollmentNotStartedError,
    get_enrollment,
    save_basic_info,
    save_school_background,
    submit_enrollment,
)

REPOSITORY = "enrollment_api.modules.enrollments.service.repository"


class TestSaveBasicInfo:
    """Tests for save_basic_info."""

    @pytest.mark.asyncio
    async def test_save_defaults_student_type_to_new(self, mock_db, student_id, basic_info_payload):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock(return_value=None)
            mock_repo.upsert_sections = AsyncMock()

            result = await save_basic_info(
                mock_db, student_id, BasicInfoRequest.model_validate(basic_info_payload)
            )

        assert result["studentType"] == "new"
        assert result["firstName"] == "Ana"
        assert result["middleName"] == ""
        mock_repo.upsert_sections.assert_called_once_with(mock_db, student_id, basic_info=result)

    @pytest.mark.asyncio
    async def test_save_writes_only_basic_info(self, mock_db, student_id, basic_info_payload):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock(return_value=None)
            mock_repo.upsert_sections = AsyncMock()

            await save_basic_info(
                mock_db, student_id, BasicInfoRequest.model_validate(basic_info_payload)
            )

        sections = mock_repo.upsert_sections.call_args.kwargs
        assert set(sections) == {"basic_info"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "missing", ["lastName", "firstName", "birthdate", "guardianName", "guardianContact"]
    )
    async def test_missing_required_field_rejected_without_write(
        self, mock_db, student_id, basic_info_payload, missing
    ):
        payload = {**basic_info_payload, missing: "   "}

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock(return_value=None)
            mock_repo.upsert_sections = AsyncMock()

            with pytest.raises(ValidationError) as exc_info:
                await save_basic_info(mock_db, student_id, BasicInfoRequest.model_validate(payload))

        assert exc_info.value.status_code == 400
        assert "Missing required fields" in exc_info.value.message
        mock_repo.upsert_sections.assert_not_called()

    @pytest.mark.asyncio
    async def test_stored_transferee_is_sticky(self, mock_db, student_id, basic_info_payload):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock(return_value={"studentType": "transferee"})
            mock_repo.upsert_sections = AsyncMock()

            result = await save_basic_info(
                mock_db, student_id, BasicInfoRequest.model_validate(basic_info_payload)
            )

        assert result["studentType"] == "transferee"

    @pytest.mark.asyncio
    async def test_stored_json_text_is_read(self, mock_db, student_id, basic_info_payload):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock(return_value='{"studentType": "Transferee"}')
            mock_repo.upsert_sections = AsyncMock()

            result = await save_basic_info(
                mock_db, student_id, BasicInfoRequest.model_validate(basic_info_payload)
            )

        assert result["studentType"] == "transferee"

    @pytest.mark.asyncio
    async def test_malformed_stored_basic_info_reads_as_empty(
        self, mock_db, student_id, basic_info_payload
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock(return_value="{broken")
            mock_repo.upsert_sections = AsyncMock()

            result = await save_basic_info(
                mock_db, student_id, BasicInfoRequest.model_validate(basic_info_payload)
            )

        assert result["studentType"] == "new"

    @pytest.mark.asyncio
    async def test_explicit_student_type_is_normalized(
        self, mock_db, student_id, basic_info_payload
    ):
        payload = {**basic_info_payload, "studentType": "freshman"}

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock(return_value={"studentType": "transferee"})
            mock_repo.upsert_sections = AsyncMock()

            result = await save_basic_info(
                mock_db, student_id, BasicInfoRequest.model_validate(payload)
            )

        assert result["studentType"] == "new"

    @pytest.mark.asyncio
    async def test_values_are_coerced_and_trimmed(self, mock_db, student_id, basic_info_payload):
        payload = {**basic_info_payload, "firstName": "  Ana  ", "birthPlace": None, "suffix": 3}

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock(return_value=None)
            mock_repo.upsert_sections = AsyncMock()

            result = await save_basic_info(
                mock_db, student_id, BasicInfoRequest.model_validate(payload)
            )

        assert result["firstName"] == "Ana"
        assert result["birthPlace"] == ""
        assert result["suffix"] == "3"


class TestSaveSchoolBackground:
    """Tests for save_school_background."""

    @pytest.mark.asyncio
    async def test_without_student_type_writes_only_school_background(
        self, mock_db, student_id, school_background_payload
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock()
            mock_repo.upsert_sections = AsyncMock()

            result = await save_school_background(
                mock_db,
                student_id,
                SchoolBackgroundRequest.model_validate(school_background_payload),
            )

        assert result["elementary"][0]["schoolName"] == "San Isidro Elementary"
        assert result["elementary"][0]["strand"] == ""
        mock_repo.get_basic_info.assert_not_called()
        assert set(mock_repo.upsert_sections.call_args.kwargs) == {"school_background"}

    @pytest.mark.asyncio
    async def test_student_type_merged_into_stored_basic_info(
        self, mock_db, student_id, school_background_payload
    ):
        stored = {"firstName": "Ana", "lastName": "Cruz", "studentType": "new"}
        payload = {**school_background_payload, "studentType": "transferee"}

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock(return_value=stored)
            mock_repo.upsert_sections = AsyncMock()

            await save_school_background(
                mock_db, student_id, SchoolBackgroundRequest.model_validate(payload)
            )

        sections = mock_repo.upsert_sections.call_args.kwargs
        assert sections["basic_info"] == {
            "firstName": "Ana",
            "lastName": "Cruz",
            "studentType": "transferee",
        }
        assert "school_background" in sections

    @pytest.mark.asyncio
    async def test_student_type_without_stored_basic_info(self, mock_db, student_id):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_basic_info = AsyncMock(return_value=None)
            mock_repo.upsert_sections = AsyncMock()

            await save_school_background(
                mock_db,
                student_id,
                SchoolBackgroundRequest.model_validate({"studentType": "transferee"}),
            )

        assert mock_repo.upsert_sections.call_args.kwargs["basic_info"] == {
            "studentType": "transferee"
        }

    @pytest.mark.asyncio
    async def test_malformed_levels_are_lenient(self, mock_db, student_id):
        payload = {"elementary": "not a list", "juniorHigh": [None, 7], "highSchool": None}

        with patch(REPOSITORY) as mock_repo:
            mock_repo.upsert_sections = AsyncMock()

            result = await save_school_background(
                mock_db, student_id, SchoolBackgroundRequest.model_validate(payload)
            )

        assert result["elementary"] == []
        assert len(result["juniorHigh"]) == 2
        assert all(value == "" for value in result["juniorHigh"][1].values())
        assert result["highSchool"] == []


class TestGetEnrollment:
    """Tests for get_enrollment."""

    @pytest.mark.asyncio
    async def test_none_when_nothing_saved(self, mock_db, student_id):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=None)

            assert await get_enrollment(mock_db, student_id) is None

    @pytest.mark.asyncio
    async def test_school_background_always_has_levels(
        self, mock_db, student_id, draft_enrollment
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_enrollment)

            result = await get_enrollment(mock_db, student_id)

        assert result["status"] == "draft"
        assert result["basic_info"]["firstName"] == "Ana"
        assert result["school_background"] == {
            "elementary": [],
            "juniorHigh": [],
            "highSchool": [],
        }


class TestSubmitEnrollment:
    """Tests for submit_enrollment."""

    @pytest.mark.asyncio
    async def test_submit_draft(self, mock_db, student_id, draft_enrollment):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_enrollment)
            mock_repo.mark_submitted = AsyncMock(return_value=True)

            result = await submit_enrollment(mock_db, student_id)

        assert result == {"status": "pending"}
        mock_repo.mark_submitted.assert_called_once_with(mock_db, draft_enrollment.id)

    @pytest.mark.asyncio
    async def test_submit_without_record(self, mock_db, student_id):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=None)
            mock_repo.mark_submitted = AsyncMock()

            with pytest.raises(EnrollmentNotStartedError) as exc_info:
                await submit_enrollment(mock_db, student_id)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "No enrollment record found. Complete Basic Info first."
        mock_repo.mark_submitted.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [EnrollmentStatus.PENDING, EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED],
    )
    async def test_submit_non_draft_rejected(self, mock_db, student_id, draft_enrollment, status):
        draft_enrollment.status = status

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_enrollment)
            mock_repo.mark_submitted = AsyncMock()

            with pytest.raises(AlreadySubmittedError) as exc_info:
                await submit_enrollment(mock_db, student_id)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Application already submitted."
        mock_repo.mark_submitted.assert_not_called()

    @pytest.mark.asyncio
    async def test_submit_archived_rejected(self, mock_db, student_id, archived_enrollment):
        archived_enrollment.status = EnrollmentStatus.DRAFT

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=archived_enrollment)
            mock_repo.mark_submitted = AsyncMock()

            with pytest.raises(EnrollmentArchivedError):
                await submit_enrollment(mock_db, student_id)

        mock_repo.mark_submitted.assert_not_called()

    @pytest.mark.asyncio
    async def test_submit_lost_race_reports_already_submitted(
        self, mock_db, student_id, draft_enrollment
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_enrollment)
            mock_repo.mark_submitted = AsyncMock(return_value=False)

            with pytest.raises(AlreadySubmittedError) as exc_info:
                await submit_enrollment(mock_db, student_id)

        assert isinstance(exc_info.value, ConflictError)
