"""
筛选查询模块 - 把稀疏的筛选条件组合成稳定的查询参数序列
"""
from dataclasses import astuple, dataclass, fields, replace
from itertools import count
from typing import Optional

from log_service import client_logger

# 下拉框中“全部”选项的取值
ALL = "all"


@dataclass(frozen=True)
class PaperFilter:
    """论文列表筛选条件，字段声明顺序即查询参数顺序"""
    course_id: Optional[str] = None
    paper_type: Optional[str] = None
    year: Optional[str] = None
    semester: Optional[str] = None
    status: Optional[str] = None


def _is_empty(value) -> bool:
    if value is None:
        return True
    text = str(value).strip()
    return text == "" or text.lower() == ALL


def compose_query(paper_filter: PaperFilter) -> list[tuple[str, str]]:
    """
    生成查询参数序列，跳过空值、None 和 “all”

    Returns:
        按字段声明顺序排列的 (key, value) 列表
    """
    params = []
    for f in fields(paper_filter):
        value = getattr(paper_filter, f.name)
        if _is_empty(value):
            continue
        params.append((f.name, str(value).strip()))
    return params


def with_change(paper_filter: PaperFilter, name: str, value) -> PaperFilter:
    """修改单个筛选字段，返回新的筛选条件"""
    return replace(paper_filter, **{name: value})


@dataclass(frozen=True)
class ListingTicket:
    """一次列表请求的凭据，记录发起请求时的筛选快照"""
    seq: int
    snapshot: tuple


class ListingTracker:
    """
    列表请求的过期判定

    每次筛选变化都会发起新请求；响应到达时，只有其快照与当前筛选条件一致才会被采用，
    否则直接丢弃，不与当前结果合并。
    """

    def __init__(self, paper_filter: Optional[PaperFilter] = None):
        self._seq = count(1)
        self.current = paper_filter or PaperFilter()
        self.results: list = []

    def begin(self, paper_filter: PaperFilter) -> ListingTicket:
        """记录新的筛选条件并返回请求凭据"""
        self.current = paper_filter
        return ListingTicket(seq=next(self._seq), snapshot=astuple(paper_filter))

    def is_current(self, ticket: ListingTicket) -> bool:
        return ticket.snapshot == astuple(self.current)

    def accept(self, ticket: ListingTicket, results: list) -> bool:
        """采用未过期的响应，返回是否采用"""
        if not self.is_current(ticket):
            client_logger.log_stale(ticket.seq, ticket.snapshot)
            return False
        self.results = results
        return True

    def fail(self, ticket: ListingTicket):
        """请求失败时清空结果，避免在新筛选条件下显示旧列表"""
        if self.is_current(ticket):
            self.results = []
