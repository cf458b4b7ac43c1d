"""
End-to-end enrollment lifecycle against the in-memory store.

These tests walk a student and a registrar through the whole flow and check
the properties that must hold across calls:
- Section writes are independent and idempotent
- A transferee stays a transferee until explicitly changed
- Submission happens once
- Archiving freezes the status
"""

import json
from datetime import UTC, datetime, timedelta

import pytest

from enrollment_api.core.exceptions import ValidationError
from enrollment_api.modules.enrollments.models import EnrollmentStatus
from enrollment_api.modules.enrollments.schemas import BasicInfoRequest, SchoolBackgroundRequest
from enrollment_api.modules.enrollments.service import (
    ADMIN_SETTABLE_STATUSES,
    AlreadySubmittedError,
    EnrollmentArchivedError,
    EnrollmentNotStartedError,
    admin_archive_enrollment,
    admin_set_status,
    get_enrollment,
    save_basic_info,
    save_school_background,
    submit_enrollment,
)


def _basic(payload):
    return BasicInfoRequest.model_validate(payload)


def _background(payload):
    return SchoolBackgroundRequest.model_validate(payload)


def _dump(document):
    return json.dumps(document, sort_keys=True)


@pytest.mark.asyncio
async def test_saving_same_basic_info_twice_is_idempotent(
    store, mock_db, student_id, basic_info_payload
):
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    first = _dump(store.by_user[student_id].basic_info)

    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    second = _dump(store.by_user[student_id].basic_info)

    assert first == second
    assert len(store.by_user) == 1


@pytest.mark.asyncio
async def test_basic_info_save_leaves_school_background_untouched(
    store, mock_db, student_id, basic_info_payload, school_background_payload
):
    await save_school_background(mock_db, student_id, _background(school_background_payload))
    before = _dump(store.by_user[student_id].school_background)

    await save_basic_info(mock_db, student_id, _basic({**basic_info_payload, "gender": "female"}))

    assert _dump(store.by_user[student_id].school_background) == before


@pytest.mark.asyncio
async def test_school_background_save_leaves_basic_info_untouched(
    store, mock_db, student_id, basic_info_payload, school_background_payload
):
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    before = _dump(store.by_user[student_id].basic_info)

    await save_school_background(mock_db, student_id, _background(school_background_payload))

    assert _dump(store.by_user[student_id].basic_info) == before


@pytest.mark.asyncio
async def test_transferee_survives_saves_that_omit_student_type(
    store, mock_db, student_id, basic_info_payload
):
    await save_basic_info(
        mock_db, student_id, _basic({**basic_info_payload, "studentType": "Transferee"})
    )
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))

    assert store.by_user[student_id].basic_info["studentType"] == "transferee"

    await save_basic_info(mock_db, student_id, _basic({**basic_info_payload, "studentType": "new"}))

    assert store.by_user[student_id].basic_info["studentType"] == "new"


@pytest.mark.asyncio
async def test_school_background_step_promotes_to_transferee(
    store, mock_db, student_id, basic_info_payload, school_background_payload
):
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    await save_school_background(
        mock_db,
        student_id,
        _background({**school_background_payload, "studentType": "transferee"}),
    )
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))

    basic_info = store.by_user[student_id].basic_info
    assert basic_info["studentType"] == "transferee"
    assert basic_info["firstName"] == "Ana"


@pytest.mark.asyncio
async def test_student_enrollment_flow(
    store, mock_db, student_id, basic_info_payload, school_background_payload
):
    assert await get_enrollment(mock_db, student_id) is None

    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    enrollment = await get_enrollment(mock_db, student_id)
    assert enrollment["status"] == "draft"
    assert enrollment["basic_info"]["lastName"] == "Cruz"
    assert enrollment["basic_info"]["studentType"] == "new"
    assert enrollment["school_background"] == {
        "elementary": [],
        "juniorHigh": [],
        "highSchool": [],
    }

    await save_school_background(mock_db, student_id, _background(school_background_payload))
    assert await submit_enrollment(mock_db, student_id) == {"status": "pending"}

    enrollment = await get_enrollment(mock_db, student_id)
    assert enrollment["status"] == "pending"
    assert enrollment["submitted_at"] is not None
    assert enrollment["school_background"]["elementary"][0]["schoolName"] == (
        "San Isidro Elementary"
    )


@pytest.mark.asyncio
async def test_submit_only_once(store, mock_db, student_id, basic_info_payload):
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    await submit_enrollment(mock_db, student_id)
    submitted_at = store.by_user[student_id].submitted_at

    with pytest.raises(AlreadySubmittedError):
        await submit_enrollment(mock_db, student_id)

    assert store.by_user[student_id].submitted_at == submitted_at
    assert store.by_user[student_id].status == EnrollmentStatus.PENDING


@pytest.mark.asyncio
async def test_submit_without_any_section_fails(store, mock_db, student_id):
    with pytest.raises(EnrollmentNotStartedError):
        await submit_enrollment(mock_db, student_id)

    assert store.by_user == {}


@pytest.mark.asyncio
async def test_admin_status_change_does_not_touch_submitted_at(
    store, mock_db, student_id, admin_id, basic_info_payload
):
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    await submit_enrollment(mock_db, student_id)
    enrollment = store.by_user[student_id]
    submitted_at = enrollment.submitted_at

    await admin_set_status(mock_db, enrollment.id, "approved", admin_id)
    await admin_set_status(mock_db, enrollment.id, "draft", admin_id)

    assert enrollment.status == EnrollmentStatus.DRAFT
    assert enrollment.submitted_at == submitted_at


@pytest.mark.asyncio
async def test_resubmit_after_return_to_draft_keeps_first_submitted_at(
    store, mock_db, student_id, admin_id, basic_info_payload
):
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    await submit_enrollment(mock_db, student_id)
    enrollment = store.by_user[student_id]
    submitted_at = enrollment.submitted_at
    await admin_set_status(mock_db, enrollment.id, "draft", admin_id)

    assert await submit_enrollment(mock_db, student_id) == {"status": "pending"}

    assert enrollment.status == EnrollmentStatus.PENDING
    assert enrollment.submitted_at == submitted_at


@pytest.mark.asyncio
@pytest.mark.parametrize("target", [status.value for status in ADMIN_SETTABLE_STATUSES])
async def test_archived_status_is_frozen(
    store, mock_db, student_id, admin_id, basic_info_payload, target
):
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    await submit_enrollment(mock_db, student_id)
    enrollment = store.by_user[student_id]
    await admin_set_status(mock_db, enrollment.id, "approved", admin_id)
    await admin_archive_enrollment(mock_db, enrollment.id, "2025-2026", admin_id)

    with pytest.raises(EnrollmentArchivedError) as exc_info:
        await admin_set_status(mock_db, enrollment.id, target, admin_id)

    assert exc_info.value.message == "Cannot update status: enrollment is archived (read-only)."
    assert enrollment.status == EnrollmentStatus.APPROVED


@pytest.mark.asyncio
async def test_rearchiving_relabels_school_year(
    store, mock_db, student_id, admin_id, basic_info_payload
):
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    enrollment = store.by_user[student_id]

    await admin_archive_enrollment(mock_db, enrollment.id, "2024-2025", admin_id)
    await admin_archive_enrollment(mock_db, enrollment.id, " 2025-2026 ", admin_id)

    assert enrollment.school_year == "2025-2026"
    assert enrollment.archived_at <= datetime.now(UTC) + timedelta(seconds=1)


@pytest.mark.asyncio
async def test_archived_draft_cannot_be_submitted(
    store, mock_db, student_id, admin_id, basic_info_payload
):
    await save_basic_info(mock_db, student_id, _basic(basic_info_payload))
    enrollment = store.by_user[student_id]
    await admin_archive_enrollment(mock_db, enrollment.id, "2025-2026", admin_id)

    with pytest.raises(EnrollmentArchivedError):
        await submit_enrollment(mock_db, student_id)

    assert enrollment.status == EnrollmentStatus.DRAFT
    assert enrollment.submitted_at is None


@pytest.mark.asyncio
async def test_rejected_basic_info_writes_nothing(store, mock_db, student_id, basic_info_payload):
    payload = {key: value for key, value in basic_info_payload.items() if key != "guardianContact"}

    with pytest.raises(ValidationError):
        await save_basic_info(mock_db, student_id, _basic(payload))

    assert store.writes == []
    assert store.by_user == {}


@pytest.mark.asyncio
async def test_malformed_stored_basic_info_is_replaced_on_save(
    store, mock_db, student_id, basic_info_payload, school_background_payload
):
    await save_school_background(mock_db, student_id, _background(school_background_payload))
    store.by_user[student_id].basic_info = "{not json"

    result = await save_basic_info(mock_db, student_id, _basic(basic_info_payload))

    assert result["studentType"] == "new"
    assert store.by_user[student_id].basic_info["lastName"] == "Cruz"
