"""
错误类型模块 - 提交与审核流程中的本地校验错误和远程错误
"""
from typing import Optional


class SubmissionError(Exception):
    """所有提交/审核相关错误的基类"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ================= 本地校验错误（不会发出请求）=================
class MissingFieldError(SubmissionError):
    """必填字段为空（课程、年份、标题、文件）"""

    def __init__(self, field: str):
        super().__init__(f"缺少必填字段: {field}")
        self.field = field


class InvalidYearError(SubmissionError):
    """年份不是整数，或不在允许范围内"""

    def __init__(self, value: str, min_year: int, max_year: int):
        super().__init__(f"无效的年份: {value!r}（应为 {min_year}-{max_year} 之间的整数）")
        self.value = value


class MissingReasonError(SubmissionError):
    """驳回时没有填写驳回原因"""

    def __init__(self):
        super().__init__("驳回论文时必须填写驳回原因")


class ForbiddenError(SubmissionError):
    """当前身份无权执行此操作"""


class InvalidTransitionError(SubmissionError):
    """状态机中未定义的状态转换（例如终态论文再次审核）"""

    def __init__(self, current: str, target: str):
        super().__init__(f"论文状态为 {current}，不能变更为 {target}")
        self.current = current
        self.target = target


# ================= 远程错误 =================
class RemoteError(SubmissionError):
    """后端返回非 2xx 响应"""

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message or f"请求失败 (HTTP {status_code})")
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401
