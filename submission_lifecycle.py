"""
论文提交生命周期模块 - 审核状态机与状态转换守卫

状态: pending（初始） -> approved / rejected（终态，不可回退）
提交只能由学生本人发起，审核只能由管理员发起。HTTP 接口与前端客户端共用这里的守卫。
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from errors import (
    ForbiddenError, InvalidTransitionError, MissingFieldError, MissingReasonError,
)
from field_resolver import FieldInput, New, from_pair, parse_year, resolve


class PaperStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaperType(str, Enum):
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    MIDTERM = "midterm"
    ENDTERM = "endterm"
    PROJECT = "project"


TERMINAL_STATUSES = {PaperStatus.APPROVED, PaperStatus.REJECTED}


def is_terminal(status) -> bool:
    """终态论文不再允许任何状态转换"""
    return PaperStatus(status) in TERMINAL_STATUSES


# ================= 提交 =================
@dataclass
class SubmissionDraft:
    """学生填写的上传表单（原始输入）"""
    title: str = ""
    description: str = ""
    paper_type: str = PaperType.ASSIGNMENT.value
    semester: str = ""
    course: FieldInput = None
    year: FieldInput = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None

    def set_course(self, selected: Optional[str] = None, text: Optional[str] = None):
        """选择和输入互斥，设置其中一个即覆盖另一个"""
        self.course = from_pair(selected, text)

    def set_year(self, selected: Optional[str] = None, text: Optional[str] = None):
        self.year = from_pair(selected, text)


@dataclass
class SubmissionRequest:
    """校验通过后的上传请求，字段与 POST /papers/upload 的表单一致"""
    course_id: str
    title: str
    description: str
    paper_type: str
    year: int
    semester: str
    file_name: str
    file_size: int
    course_is_new: bool = False
    status: PaperStatus = PaperStatus.PENDING
    uploaded_at: datetime = field(default_factory=datetime.now)

    def form_fields(self) -> dict:
        """multipart 表单中的普通字段"""
        fields = {
            "course_id": self.course_id,
            "title": self.title,
            "description": self.description,
            "paper_type": self.paper_type,
            "year": str(self.year),
            "semester": self.semester,
        }
        # 手动输入的课程代码单独标记，后端不会把它当作课程 ID
        if self.course_is_new:
            fields["course_code"] = self.course_id
        return fields


def _require_student(principal):
    if principal is None:
        raise ForbiddenError("请先登录后再提交论文")
    if principal.is_admin:
        raise ForbiddenError("管理员账户不能提交论文")


def submit(principal, draft: SubmissionDraft, now: Optional[datetime] = None) -> SubmissionRequest:
    """
    校验上传表单并生成提交请求（不发出网络请求）

    Args:
        principal: 当前登录用户，需为学生
        draft: 表单内容
        now: 上传时间，默认为当前时间

    Raises:
        ForbiddenError: 未登录或管理员提交
        MissingFieldError: 标题、文件、课程或年份为空
        InvalidYearError: 年份不合法
        ValueError: 论文类型不合法
    """
    _require_student(principal)

    title = (draft.title or "").strip()
    if not title:
        raise MissingFieldError("title")
    if not draft.file_name:
        raise MissingFieldError("file")

    # 课程与年份分别独立解析
    course_id = resolve("course", draft.course)
    year = parse_year(resolve("year", draft.year))
    paper_type = PaperType(draft.paper_type).value

    return SubmissionRequest(
        course_id=course_id,
        title=title,
        description=(draft.description or "").strip(),
        paper_type=paper_type,
        year=year,
        semester=(draft.semester or "").strip(),
        file_name=draft.file_name,
        file_size=draft.file_size or 0,
        course_is_new=isinstance(draft.course, New),
        uploaded_at=now or datetime.now(),
    )


# ================= 审核 =================
def _require_admin(principal):
    if principal is None or not principal.is_admin:
        raise ForbiddenError("需要管理员权限")


def check_transition(principal, paper, target, reason: Optional[str] = None) -> tuple[PaperStatus, Optional[str]]:
    """
    只做校验，不修改论文。返回 (目标状态, 规范化后的驳回原因)

    paper 只需要 status 属性（ORM 对象或前端字典包装均可）。
    """
    _require_admin(principal)

    target = PaperStatus(target)
    current = PaperStatus(paper.status)
    if current != PaperStatus.PENDING or target == PaperStatus.PENDING:
        raise InvalidTransitionError(current.value, target.value)

    if target == PaperStatus.REJECTED:
        reason = (reason or "").strip()
        if not reason:
            raise MissingReasonError()
        return target, reason
    return target, None


def review(principal, paper, target, reason: Optional[str] = None, now: Optional[datetime] = None):
    """执行审核：校验全部通过后才修改论文状态"""
    status, reason = check_transition(principal, paper, target, reason)
    paper.status = status.value
    paper.rejection_reason = reason
    if hasattr(paper, "reviewed_at"):
        paper.reviewed_at = now or datetime.now()
    if hasattr(paper, "reviewed_by"):
        paper.reviewed_by = principal.id
    return paper


def approve(principal, paper, now: Optional[datetime] = None):
    return review(principal, paper, PaperStatus.APPROVED, now=now)


def reject(principal, paper, reason: Optional[str], now: Optional[datetime] = None):
    return review(principal, paper, PaperStatus.REJECTED, reason, now=now)
