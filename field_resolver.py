"""
字段解析模块 - 将“选择已有 / 手动输入”的双输入合并为一个规范值

表单中课程和年份都由两个互斥的输入框组成：下拉选择已有值，或手动输入新值。
这里把两者折叠成一个带标签的值 Existing / New，再解析出唯一的规范值。
"""
from dataclasses import dataclass
from typing import Optional, Union

from errors import InvalidYearError, MissingFieldError

MIN_YEAR = 2020
MAX_YEAR = 2030


@dataclass(frozen=True)
class Existing:
    """从已有选项中选中的值（例如课程 ID）"""
    value: str


@dataclass(frozen=True)
class New:
    """用户手动输入的新值（由后端“不存在则创建”）"""
    text: str


FieldInput = Union[Existing, New, None]


def _clean(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def from_pair(selected: Optional[str], free_text: Optional[str]) -> FieldInput:
    """把 (下拉值, 输入框值) 转为带标签的值，下拉值优先"""
    selected = _clean(selected)
    if selected:
        return Existing(selected)
    free_text = _clean(free_text)
    if free_text:
        return New(free_text)
    return None


def resolve(field: str, value: FieldInput) -> str:
    """解析带标签的值，两者皆空时抛出 MissingFieldError"""
    if isinstance(value, Existing) and _clean(value.value):
        return _clean(value.value)
    if isinstance(value, New) and _clean(value.text):
        return _clean(value.text)
    raise MissingFieldError(field)


def resolve_field(field: str, selected: Optional[str], free_text: Optional[str]) -> str:
    return resolve(field, from_pair(selected, free_text))


def parse_year(value) -> int:
    """校验年份为 [MIN_YEAR, MAX_YEAR] 内的整数"""
    text = _clean(value)
    try:
        year = int(text)
    except ValueError:
        raise InvalidYearError(text, MIN_YEAR, MAX_YEAR)
    if year < MIN_YEAR or year > MAX_YEAR:
        raise InvalidYearError(text, MIN_YEAR, MAX_YEAR)
    return year


def resolve_year(selected: Optional[str], free_text: Optional[str]) -> int:
    return parse_year(resolve_field("year", selected, free_text))


def resolve_course(selected: Optional[str], free_text: Optional[str]) -> str:
    return resolve_field("course", selected, free_text)
