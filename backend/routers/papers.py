"""
论文路由 - 提交、列表、审核、下载
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session, joinedload
from typing import Optional
from urllib.parse import quote

import submission_lifecycle
from db_models import Paper, User
from db_service import resolve_course
from errors import (
    ForbiddenError, InvalidTransitionError, InvalidYearError, MissingFieldError,
    MissingReasonError, SubmissionError,
)
from field_resolver import Existing, FieldInput, New
from file_service import ALLOWED_EXTENSIONS, MAX_UPLOAD_SIZE, file_service, get_extension
from log_service import review_logger, submission_logger
from utils import calculate_md5, sanitize_filename

from backend.deps import get_db, get_current_user, get_current_admin, get_current_student
from backend.schemas import PaperResponse, ReviewRequest

router = APIRouter(prefix="/papers", tags=["论文"])

# 本地校验错误对应的 HTTP 状态码
_ERROR_STATUS = {
    ForbiddenError: 403,
    InvalidTransitionError: 409,
    MissingFieldError: 422,
    InvalidYearError: 422,
    MissingReasonError: 422,
}


def to_http_exception(error: SubmissionError) -> HTTPException:
    return HTTPException(status_code=_ERROR_STATUS.get(type(error), 400), detail=error.message)


def paper_to_response(paper: Paper) -> PaperResponse:
    """将 Paper ORM 对象转换为响应模型"""
    return PaperResponse(
        id=paper.id,
        title=paper.title,
        description=paper.description,
        paper_type=paper.paper_type,
        year=paper.year,
        semester=paper.semester,
        file_name=paper.file_name,
        file_size=paper.file_size,
        status=paper.status,
        rejection_reason=paper.rejection_reason,
        uploaded_at=paper.uploaded_at,
        reviewed_at=paper.reviewed_at,
        course_id=paper.course_id,
        course_code=paper.course.code if paper.course else None,
        course_name=paper.course.name if paper.course else None,
        owner_id=paper.owner_id,
        owner_name=paper.owner.name if paper.owner else None,
    )


def _course_input(course_id: str, course_code: str) -> FieldInput:
    """手动输入的课程代码优先，其次是课程 ID"""
    if course_code.strip():
        return New(course_code)
    if course_id.strip():
        return Existing(course_id)
    return None


def _get_visible_paper(db: Session, paper_id: int, current_user: User) -> Paper:
    paper = (
        db.query(Paper)
        .options(joinedload(Paper.course), joinedload(Paper.owner))
        .filter(Paper.id == paper_id)
        .first()
    )
    if not paper:
        raise HTTPException(status_code=404, detail="论文不存在")

    # 权限检查
    if not current_user.is_admin and paper.owner_id != current_user.id:
        raise HTTPException(status_code=403, detail="无权访问此论文")
    return paper


@router.post("/upload", response_model=PaperResponse)
async def upload_paper(
    course_id: str = Form(""),
    course_code: str = Form(""),
    title: str = Form(""),
    description: str = Form(""),
    paper_type: str = Form(submission_lifecycle.PaperType.ASSIGNMENT.value),
    year: str = Form(""),
    semester: str = Form(""),
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_student),
    db: Session = Depends(get_db)
):
    """
    提交论文

    course_code 非空时表示学生手动输入的新课程代码（不存在则创建）；
    否则 course_id 为已有课程 ID，兼容直接传入课程代码。
    新提交的论文状态总是 pending。
    """
    content = await file.read()

    draft = submission_lifecycle.SubmissionDraft(
        title=title,
        description=description,
        paper_type=paper_type,
        semester=semester,
        course=_course_input(course_id, course_code),
        year=Existing(year) if year.strip() else None,
        file_name=file.filename if content else None,
        file_size=len(content),
    )
    try:
        request = submission_lifecycle.submit(current_user, draft)
    except SubmissionError as e:
        submission_logger.log_rejected_input(current_user.id, e.message)
        raise to_http_exception(e)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"无效的论文类型: {paper_type}")

    if get_extension(request.file_name) not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=422,
            detail=f"不支持的文件类型，允许: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
    if request.file_size > MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="文件过大")

    # 同一学生不能重复提交同一文件
    md5 = calculate_md5(content)
    existing = db.query(Paper.id).filter(
        Paper.md5_hash == md5,
        Paper.owner_id == current_user.id
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="该文件已提交过")

    course, _ = resolve_course(db, request.course_id, is_new=request.course_is_new)
    file_info = file_service.save_file(
        content=content,
        user_id=current_user.id,
        md5_hash=md5,
        original_filename=request.file_name
    )

    paper = Paper(
        title=request.title,
        description=request.description or None,
        paper_type=request.paper_type,
        year=request.year,
        semester=request.semester or None,
        status=request.status.value,
        file_name=file_info["file_name"],
        file_path=file_info["file_path"],
        file_size=file_info["file_size"],
        md5_hash=md5,
        uploaded_at=file_info["uploaded_at"],
        course=course,
        owner=current_user,
    )
    db.add(paper)
    try:
        db.commit()
    except Exception:
        db.rollback()
        file_service.delete_file(file_info["file_path"])
        raise
    db.refresh(paper)

    submission_logger.log_submitted(current_user.id, paper.id, course.code, paper.file_name)
    return paper_to_response(paper)


@router.get("", response_model=list[PaperResponse])
async def get_papers(
    course_id: Optional[int] = Query(None, description="课程 ID"),
    paper_type: Optional[str] = Query(None, description="论文类型"),
    year: Optional[int] = Query(None, description="年份"),
    semester: Optional[str] = Query(None, description="学期"),
    status: Optional[str] = Query(None, description="审核状态"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """获取论文列表（学生只能看到自己的论文）"""
    query = (
        db.query(Paper)
        .options(joinedload(Paper.course), joinedload(Paper.owner))
        .order_by(Paper.uploaded_at.desc(), Paper.id.desc())
    )

    if not current_user.is_admin:
        query = query.filter(Paper.owner_id == current_user.id)

    if course_id is not None:
        query = query.filter(Paper.course_id == course_id)
    if paper_type:
        query = query.filter(Paper.paper_type == paper_type)
    if year is not None:
        query = query.filter(Paper.year == year)
    if semester:
        query = query.filter(Paper.semester == semester)
    if status:
        query = query.filter(Paper.status == status)

    return [paper_to_response(p) for p in query.all()]


@router.get("/pending", response_model=list[PaperResponse])
async def get_pending_papers(
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """待审核队列，按提交时间先后排列"""
    papers = (
        db.query(Paper)
        .options(joinedload(Paper.course), joinedload(Paper.owner))
        .filter(Paper.status == submission_lifecycle.PaperStatus.PENDING.value)
        .order_by(Paper.uploaded_at.asc(), Paper.id.asc())
        .all()
    )
    return [paper_to_response(p) for p in papers]


@router.get("/{paper_id}", response_model=PaperResponse)
async def get_paper(
    paper_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """获取单篇论文详情"""
    return paper_to_response(_get_visible_paper(db, paper_id, current_user))


@router.patch("/{paper_id}/review", response_model=PaperResponse)
async def review_paper(
    paper_id: int,
    request: ReviewRequest,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """审核论文：通过或驳回（驳回需填写原因）"""
    paper = _get_visible_paper(db, paper_id, current_user)
    old_status = paper.status

    try:
        submission_lifecycle.review(current_user, paper, request.status, request.rejection_reason)
    except SubmissionError as e:
        review_logger.log_refused(paper.id, e.message)
        raise to_http_exception(e)

    db.commit()
    db.refresh(paper)
    review_logger.log_transition(paper.id, old_status, paper.status, current_user.id)
    return paper_to_response(paper)


@router.delete("/{paper_id}")
async def delete_paper(
    paper_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """删除论文：学生只能删除自己待审核的论文，管理员可删除任意论文"""
    paper = _get_visible_paper(db, paper_id, current_user)

    if not current_user.is_admin and paper.status != submission_lifecycle.PaperStatus.PENDING.value:
        raise HTTPException(status_code=403, detail="已审核的论文不能删除")

    file_service.delete_file(paper.file_path)
    db.delete(paper)
    db.commit()
    return {"message": "删除成功"}


@router.get("/{paper_id}/download")
async def download_paper(
    paper_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """下载论文文件"""
    paper = _get_visible_paper(db, paper_id, current_user)

    file_path = file_service.get_file_path(paper.file_path)
    if not file_path:
        raise HTTPException(status_code=404, detail="文件不存在")

    download_filename = sanitize_filename(paper.file_name or "paper")
    encoded_filename = quote(download_filename)

    return FileResponse(
        path=file_path,
        filename=download_filename,
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{encoded_filename}"
        }
    )
