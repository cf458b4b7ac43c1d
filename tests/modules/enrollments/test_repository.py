"""
Unit tests for the enrollment repository's guarded statements.

The section upsert, the draft-only submit and the archive lock are enforced
by the SQL itself, so these tests compile the statements the repository
executes with the PostgreSQL dialect and check their clauses.
"""

import re
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from enrollment_api.modules.enrollments import repository
from enrollment_api.modules.enrollments.models import EnrollmentStatus


def _executed(mock_db):
    """Compile the statement passed to the last ``db.execute`` call."""
    stmt = mock_db.execute.call_args.args[0]
    return stmt.compile(dialect=postgresql.dialect())


def _where(compiled) -> str:
    return str(compiled).split(" WHERE ", 1)[1]


def _bound_value(compiled, column: str):
    """Value bound against ``enrollments.<column>`` in the WHERE clause."""
    match = re.search(rf"enrollments\.{column} = %\((\w+)\)s", _where(compiled))
    assert match, f"no bound comparison on {column}"
    return compiled.params[match.group(1)]


@pytest.fixture
def matched_db(mock_db):
    mock_db.execute.return_value = MagicMock(rowcount=1)
    return mock_db


class TestUpsertSections:
    """Tests for upsert_sections."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("section", ["basic_info", "school_background"])
    async def test_conflict_update_sets_only_the_written_section(
        self, mock_db, student_id, section
    ):
        await repository.upsert_sections(mock_db, student_id, **{section: {"a": "b"}})

        sql = str(_executed(mock_db))
        conflict_set = sql.split("ON CONFLICT (user_id) DO UPDATE SET", 1)[1]
        assert sorted(re.findall(r"(\w+) = ", conflict_set)) == sorted([section, "updated_at"])
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_new_record_starts_as_draft(self, mock_db, student_id):
        await repository.upsert_sections(mock_db, student_id, basic_info={"a": "b"})

        compiled = _executed(mock_db)
        assert compiled.params["status"] == EnrollmentStatus.DRAFT
        assert compiled.params["user_id"] == student_id


class TestMarkSubmitted:
    """Tests for mark_submitted."""

    @pytest.mark.asyncio
    async def test_only_unarchived_drafts_match(self, matched_db, enrollment_id):
        assert await repository.mark_submitted(matched_db, enrollment_id) is True

        compiled = _executed(matched_db)
        assert _bound_value(compiled, "status") == EnrollmentStatus.DRAFT
        assert _bound_value(compiled, "id") == enrollment_id
        assert "enrollments.archived_at IS NULL" in _where(compiled)

    @pytest.mark.asyncio
    async def test_keeps_an_earlier_submitted_at(self, matched_db, enrollment_id):
        await repository.mark_submitted(matched_db, enrollment_id)

        compiled = _executed(matched_db)
        assert "submitted_at=coalesce(enrollments.submitted_at, now())" in str(compiled)
        assert compiled.params["status"] == EnrollmentStatus.PENDING

    @pytest.mark.asyncio
    async def test_no_match_is_reported(self, mock_db, enrollment_id):
        mock_db.execute.return_value = MagicMock(rowcount=0)

        assert await repository.mark_submitted(mock_db, enrollment_id) is False


class TestSetStatusIfNotArchived:
    """Tests for set_status_if_not_archived."""

    @pytest.mark.asyncio
    async def test_archived_records_never_match(self, matched_db, enrollment_id):
        result = await repository.set_status_if_not_archived(
            matched_db, enrollment_id, EnrollmentStatus.APPROVED
        )

        assert result is True
        compiled = _executed(matched_db)
        assert _bound_value(compiled, "id") == enrollment_id
        assert "enrollments.archived_at IS NULL" in _where(compiled)
        assert compiled.params["status"] == EnrollmentStatus.APPROVED

    @pytest.mark.asyncio
    async def test_no_match_is_reported(self, mock_db, enrollment_id):
        mock_db.execute.return_value = MagicMock(rowcount=0)

        result = await repository.set_status_if_not_archived(
            mock_db, enrollment_id, EnrollmentStatus.APPROVED
        )

        assert result is False
