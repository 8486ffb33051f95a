"""
后端 API 客户端 - 基于 httpx，自动附带 Bearer 凭据并统一处理错误状态码
"""
import os
from types import SimpleNamespace
from typing import Optional

import httpx
from dotenv import load_dotenv

import submission_lifecycle
from errors import ForbiddenError, RemoteError, SubmissionError
from filter_query import ListingTracker, PaperFilter, compose_query
from identity_session import IdentitySession, Principal
from log_service import client_logger

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")


def _error_message(response: httpx.Response) -> Optional[str]:
    """提取后端返回的错误信息（FastAPI 的 detail 字段）"""
    try:
        data = response.json()
    except ValueError:
        return response.text or None
    detail = data.get("detail") if isinstance(data, dict) else None
    if isinstance(detail, list):
        # 请求体校验失败时 detail 为错误列表
        return "; ".join(str(item.get("msg", item)) for item in detail)
    return detail


class PaperApiClient:
    """论文提交系统的后端客户端"""

    def __init__(
        self,
        session: IdentitySession,
        base_url: str = None,
        transport: httpx.BaseTransport = None,
        timeout: float = 30.0
    ):
        self.session = session
        self._client = httpx.Client(
            base_url=base_url or API_BASE_URL,
            transport=transport,
            timeout=httpx.Timeout(timeout, connect=10.0),
        )

    def close(self):
        self._client.close()

    # ================= 请求与错误处理 =================
    def _send(self, method: str, path: str, token: str = None, **kwargs) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        token = token or self.session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        client_logger.log_request(method, path)
        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as e:
            client_logger.log_remote_error(method, path, 0, str(e))
            raise RemoteError(0, f"无法连接后端: {e}")
        if response.is_success:
            return response

        message = _error_message(response)
        client_logger.log_remote_error(method, path, response.status_code, message)
        if response.status_code == 401:
            self.session.force_anonymous()
        if response.status_code == 403:
            raise ForbiddenError(message or "无权执行此操作")
        raise RemoteError(response.status_code, message)

    def _request(self, method: str, path: str, token: str = None, **kwargs):
        response = self._send(method, path, token=token, **kwargs)
        return response.json() if response.content else None

    # ================= 认证 =================
    def login(self, email: str, password: str) -> Principal:
        """登录并写入身份会话"""
        data = self._request(
            "POST", "/login",
            data={"username": email, "password": password},
        )
        token = data["access_token"]
        user = Principal.from_dict(self.get_me(token), token=token)
        self.session.login(user)
        return user

    def register(self, email: str, name: str, password: str) -> dict:
        return self._request("POST", "/register", json={"email": email, "name": name, "password": password})

    def get_me(self, token: str = None) -> dict:
        return self._request("GET", "/me", token=token)

    def restore_session(self):
        """应用启动时从已存储的凭据恢复会话"""
        return self.session.resolve(self.get_me)

    # ================= 课程 =================
    def get_courses(self) -> list[dict]:
        return self._request("GET", "/courses")

    def create_course(self, code: str, name: str, description: str = None) -> dict:
        return self._request("POST", "/courses", json={"code": code, "name": name, "description": description})

    def update_course(self, course_id: int, **changes) -> dict:
        return self._request("PUT", f"/courses/{course_id}", json=changes)

    def delete_course(self, course_id: int):
        return self._request("DELETE", f"/courses/{course_id}")

    # ================= 论文 =================
    def get_papers(self, paper_filter: PaperFilter = None) -> list[dict]:
        params = compose_query(paper_filter or PaperFilter())
        return self._request("GET", "/papers", params=params)

    def fetch_listing(self, tracker: ListingTracker, paper_filter: PaperFilter) -> bool:
        """按新的筛选条件刷新列表，过期响应会被丢弃"""
        ticket = tracker.begin(paper_filter)
        try:
            papers = self.get_papers(paper_filter)
        except SubmissionError:
            tracker.fail(ticket)
            raise
        return tracker.accept(ticket, papers)

    def get_pending_papers(self) -> list[dict]:
        return self._request("GET", "/papers/pending")

    def get_paper(self, paper_id: int) -> dict:
        return self._request("GET", f"/papers/{paper_id}")

    def submit_paper(self, draft: submission_lifecycle.SubmissionDraft, content: bytes) -> dict:
        """
        提交论文

        本地校验失败时直接抛出异常，不会发出请求。
        """
        request = submission_lifecycle.submit(self.session.user, draft)
        return self._request(
            "POST", "/papers/upload",
            data=request.form_fields(),
            files={"file": (request.file_name, content)},
        )

    def review_paper(self, paper: dict, status: str, rejection_reason: str = None) -> dict:
        """
        审核论文

        先在本地做状态机校验，失败则不发请求；请求失败时原 paper 字典保持不变。
        """
        target, reason = submission_lifecycle.check_transition(
            self.session.user, SimpleNamespace(status=paper["status"]), status, rejection_reason
        )
        body = {"status": target.value}
        if reason:
            body["rejection_reason"] = reason
        return self._request("PATCH", f"/papers/{paper['id']}/review", json=body)

    def delete_paper(self, paper_id: int):
        return self._request("DELETE", f"/papers/{paper_id}")

    def download_paper(self, paper_id: int) -> bytes:
        return self._send("GET", f"/papers/{paper_id}/download").content

    # ================= 管理员 =================
    def get_dashboard_stats(self) -> dict:
        return self._request("GET", "/admin/dashboard")
