"""Tests for the HTTP client: query strings, local validation and status handling."""
import json

import httpx
import pytest

from api_client import PaperApiClient
from errors import ForbiddenError, InvalidTransitionError, MissingFieldError, MissingReasonError, RemoteError
from field_resolver import Existing, New
from filter_query import ListingTracker, PaperFilter
from identity_session import CredentialStore, IdentitySession, Principal
from submission_lifecycle import SubmissionDraft

STUDENT = Principal(id=2, email="alice@uni.edu", name="Alice", is_admin=False, token="tok-student")
ADMIN = Principal(id=1, email="admin@uni.edu", name="Admin", is_admin=True, token="tok-admin")


class FakeBackend:
    """Records requests and answers from a queue of canned responses."""

    def __init__(self, *responses):
        self.requests = []
        self.responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses.pop(0)
        return httpx.Response(status, json=body)


def make_client(backend, user=None):
    session = IdentitySession(CredentialStore())
    session.resolve(lambda token: {})
    if user:
        session.login(user)
    return PaperApiClient(session, base_url="http://testserver", transport=httpx.MockTransport(backend))


def test_get_papers_sends_composed_query_and_bearer():
    backend = FakeBackend((200, []))
    client = make_client(backend, STUDENT)

    client.get_papers(PaperFilter(course_id="3", paper_type="", year="2024", semester=""))

    request = backend.requests[0]
    assert request.url.path == "/papers"
    assert list(request.url.params.multi_items()) == [("course_id", "3"), ("year", "2024")]
    assert request.headers["Authorization"] == "Bearer tok-student"


def test_fetch_listing_updates_tracker():
    backend = FakeBackend((200, [{"id": 1}]))
    client = make_client(backend, STUDENT)
    tracker = ListingTracker()

    assert client.fetch_listing(tracker, PaperFilter(status="pending")) is True
    assert tracker.results == [{"id": 1}]


def test_submit_sends_canonical_fields():
    backend = FakeBackend((200, {"id": 7, "title": "HW1", "status": "pending"}))
    client = make_client(backend, STUDENT)
    draft = SubmissionDraft(
        title="HW1", paper_type="assignment", semester="Fall 2024",
        course=New("CS101"), year=Existing("2024"), file_name="hw1.pdf", file_size=4,
    )

    paper = client.submit_paper(draft, b"data")

    assert paper["status"] == "pending"
    request = backend.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/papers/upload"
    body = request.content.decode("latin-1")
    assert 'name="course_id"\r\n\r\nCS101' in body
    assert 'name="year"\r\n\r\n2024' in body
    assert 'name="course_code"\r\n\r\nCS101' in body
    assert 'filename="hw1.pdf"' in body


def test_local_validation_failure_sends_nothing():
    backend = FakeBackend()
    client = make_client(backend, STUDENT)
    draft = SubmissionDraft(title="HW1", course=None, year=Existing("2024"), file_name="hw1.pdf")

    with pytest.raises(MissingFieldError):
        client.submit_paper(draft, b"data")
    assert backend.requests == []


def test_review_sends_reason():
    backend = FakeBackend((200, {"id": 42, "status": "rejected", "rejection_reason": "wrong format"}))
    client = make_client(backend, ADMIN)

    updated = client.review_paper({"id": 42, "status": "pending"}, "rejected", "wrong format")

    assert updated["status"] == "rejected"
    request = backend.requests[0]
    assert request.method == "PATCH"
    assert request.url.path == "/papers/42/review"
    assert json.loads(request.content) == {"status": "rejected", "rejection_reason": "wrong format"}


@pytest.mark.parametrize("paper, status, reason, error", [
    ({"id": 42, "status": "pending"}, "rejected", "", MissingReasonError),
    ({"id": 42, "status": "rejected"}, "approved", None, InvalidTransitionError),
    ({"id": 42, "status": "approved"}, "approved", None, InvalidTransitionError),
])
def test_invalid_review_is_blocked_locally(paper, status, reason, error):
    backend = FakeBackend()
    client = make_client(backend, ADMIN)
    original = dict(paper)

    with pytest.raises(error):
        client.review_paper(paper, status, reason)
    assert backend.requests == []
    assert paper == original


def test_student_cannot_review():
    client = make_client(FakeBackend(), STUDENT)
    with pytest.raises(ForbiddenError):
        client.review_paper({"id": 1, "status": "pending"}, "approved")


def test_401_forces_anonymous_session():
    client = make_client(FakeBackend((401, {"detail": "无效的认证凭据"})), STUDENT)

    with pytest.raises(RemoteError) as exc:
        client.get_courses()
    assert exc.value.status_code == 401
    assert not client.session.has_session
    assert client.session.token is None


def test_403_surfaces_forbidden():
    client = make_client(FakeBackend((403, {"detail": "需要管理员权限"})), STUDENT)
    with pytest.raises(ForbiddenError) as exc:
        client.get_dashboard_stats()
    assert exc.value.message == "需要管理员权限"
    assert client.session.has_session


@pytest.mark.parametrize("status", [400, 422])
def test_validation_message_is_verbatim(status):
    client = make_client(FakeBackend((status, {"detail": "该文件已提交过"})), STUDENT)
    with pytest.raises(RemoteError) as exc:
        client.get_courses()
    assert exc.value.status_code == status
    assert exc.value.message == "该文件已提交过"


def test_validation_error_list_is_joined():
    body = {"detail": [{"loc": ["body", "status"], "msg": "Input should be 'pending', 'approved' or 'rejected'"}]}
    client = make_client(FakeBackend((422, body)), ADMIN)
    with pytest.raises(RemoteError) as exc:
        client.get_courses()
    assert "Input should be" in exc.value.message


def test_login_populates_session():
    backend = FakeBackend(
        (200, {"access_token": "tok-new", "token_type": "bearer"}),
        (200, {"id": 2, "email": "alice@uni.edu", "name": "Alice", "is_admin": False}),
    )
    client = make_client(backend)

    user = client.login("alice@uni.edu", "secret123")

    assert user.token == "tok-new"
    assert client.session.has_session
    assert backend.requests[1].headers["Authorization"] == "Bearer tok-new"


def test_restore_session_from_stored_token():
    backend = FakeBackend((200, {"id": 1, "email": "admin@uni.edu", "name": "Admin", "is_admin": True}))
    session = IdentitySession(CredentialStore("tok-stored"))
    client = PaperApiClient(session, base_url="http://testserver", transport=httpx.MockTransport(backend))

    client.restore_session()

    assert session.is_admin
    assert backend.requests[0].url.path == "/me"
    assert backend.requests[0].headers["Authorization"] == "Bearer tok-stored"


def test_failed_refetch_drops_previous_results():
    backend = FakeBackend((200, [{"id": 1, "year": 2023}]), (500, {"detail": "boom"}))
    client = make_client(backend, STUDENT)
    tracker = ListingTracker()

    assert client.fetch_listing(tracker, PaperFilter(year="2023")) is True
    with pytest.raises(RemoteError):
        client.fetch_listing(tracker, PaperFilter(year="2024"))

    assert tracker.current == PaperFilter(year="2024")
    assert tracker.results == []
