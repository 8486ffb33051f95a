"""
管理员路由 - 仪表盘与用户管理
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from db_models import User
from db_service import get_dashboard_stats

from backend.deps import get_db, get_current_admin
from backend.schemas import DashboardStatsResponse, UserResponse

router = APIRouter(prefix="/admin", tags=["管理"])


@router.get("/dashboard", response_model=DashboardStatsResponse)
async def get_dashboard(
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """获取审核概况统计"""
    return DashboardStatsResponse(**get_dashboard_stats(db))


@router.get("/users", response_model=list[UserResponse])
async def get_users(
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """获取所有用户"""
    return [UserResponse.model_validate(u) for u in db.query(User).order_by(User.id).all()]
