"""
数据库服务模块 - 课程解析与统计查询
"""
from sqlalchemy import func

from db_models import Course, Paper, User
from log_service import submission_logger


# ================= 课程操作 =================
def find_course_by_code(session, code: str) -> Course | None:
    """按课程代码查找（不区分大小写）"""
    return session.query(Course).filter(func.lower(Course.code) == code.strip().lower()).first()


def resolve_course(session, course_value: str, is_new: bool = False) -> tuple[Course, bool]:
    """
    把上传表单中的课程解析为课程记录

    is_new 为 True 时 course_value 是学生手动输入的课程代码，只按代码查找；
    否则先按课程 ID 查找，找不到再按代码查找。代码不存在时自动创建课程，名称默认为代码本身。

    Returns:
        (course, 是否为新建)
    """
    value = course_value.strip()
    if not is_new and value.isdecimal():
        course = session.get(Course, int(value))
        if course:
            return course, False

    course = find_course_by_code(session, value)
    if course:
        return course, False

    course = Course(code=value.upper(), name=value)
    session.add(course)
    session.flush()
    submission_logger.log_course_created(course.code)
    return course, True


# ================= 统计 =================
def get_dashboard_stats(session) -> dict:
    """管理员仪表盘统计"""
    status_counts = dict(
        session.query(Paper.status, func.count(Paper.id)).group_by(Paper.status).all()
    )
    return {
        "total_papers": sum(status_counts.values()),
        "pending_papers": status_counts.get("pending", 0),
        "approved_papers": status_counts.get("approved", 0),
        "rejected_papers": status_counts.get("rejected", 0),
        "total_courses": session.query(Course).count(),
        "total_students": session.query(User).filter(User.is_admin.is_(False)).count(),
        "total_storage": session.query(func.coalesce(func.sum(Paper.file_size), 0)).scalar(),
    }
