"""
课程路由 - 课程列表与管理员维护
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from db_models import Course, Paper, User
from db_service import find_course_by_code

from backend.deps import get_db, get_current_user, get_current_admin
from backend.schemas import CourseResponse, CreateCourseRequest, UpdateCourseRequest

router = APIRouter(prefix="/courses", tags=["课程"])


def _get_course_or_404(db: Session, course_id: int) -> Course:
    course = db.get(Course, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="课程不存在")
    return course


@router.get("", response_model=list[CourseResponse])
async def get_courses(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """获取所有课程"""
    return db.query(Course).order_by(Course.code).all()


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(
    course_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _get_course_or_404(db, course_id)


@router.post("", response_model=CourseResponse)
async def create_course(
    request: CreateCourseRequest,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """新建课程"""
    code = request.code.strip().upper()
    if not code or not request.name.strip():
        raise HTTPException(status_code=422, detail="课程代码和名称不能为空")
    if find_course_by_code(db, code):
        raise HTTPException(status_code=400, detail="课程代码已存在")

    course = Course(code=code, name=request.name.strip(), description=request.description)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: int,
    request: UpdateCourseRequest,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """修改课程信息"""
    course = _get_course_or_404(db, course_id)

    if request.code is not None:
        code = request.code.strip().upper()
        existing = find_course_by_code(db, code)
        if existing and existing.id != course.id:
            raise HTTPException(status_code=400, detail="课程代码已存在")
        course.code = code
    if request.name is not None:
        course.name = request.name.strip()
    if request.description is not None:
        course.description = request.description

    db.commit()
    db.refresh(course)
    return course


@router.delete("/{course_id}")
async def delete_course(
    course_id: int,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """删除课程（仍有论文引用时拒绝删除）"""
    course = _get_course_or_404(db, course_id)
    if db.query(Paper.id).filter(Paper.course_id == course.id).first():
        raise HTTPException(status_code=400, detail="该课程下仍有论文，无法删除")

    db.delete(course)
    db.commit()
    return {"message": "删除成功"}
