"""Tests for the paper review state machine and submission validation."""
from datetime import datetime
from types import SimpleNamespace

import pytest

from errors import (
    ForbiddenError, InvalidTransitionError, InvalidYearError, MissingFieldError, MissingReasonError,
)
from field_resolver import Existing, New
from identity_session import Principal
from submission_lifecycle import (
    PaperStatus, SubmissionDraft, approve, is_terminal, reject, review, submit,
)

STUDENT = Principal(id=2, email="alice@uni.edu", name="Alice", is_admin=False)
ADMIN = Principal(id=1, email="admin@uni.edu", name="Admin", is_admin=True)


def make_paper(status="pending", paper_id=42):
    return SimpleNamespace(id=paper_id, status=status, rejection_reason=None, reviewed_at=None, reviewed_by=None)


def make_draft(**overrides) -> SubmissionDraft:
    draft = SubmissionDraft(
        title="HW1",
        paper_type="assignment",
        semester="Fall 2024",
        course=New("CS101"),
        year=Existing("2024"),
        file_name="hw1.pdf",
        file_size=1024,
    )
    for key, value in overrides.items():
        setattr(draft, key, value)
    return draft


# ================= 提交 =================
def test_submit_builds_pending_request():
    now = datetime(2024, 10, 1, 9, 30)
    request = submit(STUDENT, make_draft(), now=now)

    assert request.status == PaperStatus.PENDING
    assert request.uploaded_at == now
    assert request.course_is_new is True
    assert request.form_fields() == {
        "course_id": "CS101",
        "title": "HW1",
        "description": "",
        "paper_type": "assignment",
        "year": "2024",
        "semester": "Fall 2024",
        "course_code": "CS101",
    }
    assert (request.file_name, request.file_size) == ("hw1.pdf", 1024)


def test_submit_from_form_pair():
    draft = make_draft()
    draft.set_course(selected="", text="CS101")
    draft.set_year(selected="2024", text="")
    request = submit(STUDENT, draft)
    assert request.course_id == "CS101"
    assert request.year == 2024


@pytest.mark.parametrize("overrides, field", [
    ({"title": "  "}, "title"),
    ({"file_name": None}, "file"),
    ({"course": None}, "course"),
    ({"year": None}, "year"),
])
def test_submit_requires_fields(overrides, field):
    with pytest.raises(MissingFieldError) as exc:
        submit(STUDENT, make_draft(**overrides))
    assert exc.value.field == field


def test_submit_rejects_bad_year():
    with pytest.raises(InvalidYearError):
        submit(STUDENT, make_draft(year=New("2019")))


def test_submit_rejects_unknown_paper_type():
    with pytest.raises(ValueError):
        submit(STUDENT, make_draft(paper_type="essay"))


@pytest.mark.parametrize("principal", [None, ADMIN])
def test_only_students_submit(principal):
    with pytest.raises(ForbiddenError):
        submit(principal, make_draft())


# ================= 审核 =================
def test_terminal_statuses():
    assert not is_terminal("pending")
    assert is_terminal("approved")
    assert is_terminal(PaperStatus.REJECTED)


def test_approve_pending_paper():
    paper = approve(ADMIN, make_paper())
    assert paper.status == "approved"
    assert paper.rejection_reason is None
    assert paper.reviewed_by == ADMIN.id
    assert paper.reviewed_at is not None


@pytest.mark.parametrize("reason", ["", "   ", None])
def test_reject_without_reason_keeps_pending(reason):
    paper = make_paper()
    with pytest.raises(MissingReasonError):
        reject(ADMIN, paper, reason)
    assert paper.status == "pending"
    assert paper.reviewed_at is None


def test_reject_then_approve_is_refused():
    paper = reject(ADMIN, make_paper(paper_id=42), "wrong format")
    assert paper.status == "rejected"
    assert paper.rejection_reason == "wrong format"

    with pytest.raises(InvalidTransitionError):
        approve(ADMIN, paper)
    assert paper.status == "rejected"
    assert paper.rejection_reason == "wrong format"


def test_approve_twice_is_not_reapplied():
    paper = approve(ADMIN, make_paper())
    reviewed_at = paper.reviewed_at
    with pytest.raises(InvalidTransitionError):
        approve(ADMIN, paper)
    assert paper.reviewed_at == reviewed_at


def test_review_back_to_pending_is_undefined():
    with pytest.raises(InvalidTransitionError):
        review(ADMIN, make_paper(), "pending")


@pytest.mark.parametrize("principal", [None, STUDENT])
def test_non_admin_review_is_forbidden(principal):
    paper = make_paper()
    with pytest.raises(ForbiddenError):
        approve(principal, paper)
    assert paper.status == "pending"


def test_selected_course_is_sent_without_code_marker():
    request = submit(STUDENT, make_draft(course=Existing("5")))
    assert request.course_is_new is False
    assert request.form_fields()["course_id"] == "5"
    assert "course_code" not in request.form_fields()
