"""
Pydantic 模型定义 - 用于 API 请求/响应验证
"""
from datetime import datetime
from pydantic import BaseModel
from typing import Optional

from submission_lifecycle import PaperStatus


# ================= Auth =================
class RegisterRequest(BaseModel):
    email: str
    name: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    is_admin: bool

    class Config:
        from_attributes = True


# ================= Courses =================
class CourseResponse(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class CreateCourseRequest(BaseModel):
    code: str
    name: str
    description: Optional[str] = None


class UpdateCourseRequest(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None


# ================= Papers =================
class PaperResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    paper_type: str
    year: int
    semester: Optional[str] = None
    file_name: str
    file_size: int
    status: str
    rejection_reason: Optional[str] = None
    uploaded_at: datetime
    reviewed_at: Optional[datetime] = None
    course_id: int
    course_code: Optional[str] = None
    course_name: Optional[str] = None
    owner_id: int
    owner_name: Optional[str] = None


class ReviewRequest(BaseModel):
    status: PaperStatus
    rejection_reason: Optional[str] = None


# ================= Admin =================
class DashboardStatsResponse(BaseModel):
    total_papers: int
    pending_papers: int
    approved_papers: int
    rejected_papers: int
    total_courses: int
    total_students: int
    total_storage: int
