"""
认证路由 - 登录、注册、获取当前用户
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from auth_service import register_user, verify_user
from db_models import User

from backend.deps import get_db, create_access_token, get_current_user
from backend.schemas import RegisterRequest, TokenResponse, UserResponse

router = APIRouter(tags=["认证"])


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """用户登录（username 字段填写邮箱）"""
    user = verify_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="邮箱或密码错误",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(user)
    return TokenResponse(access_token=access_token)


@router.post("/register", response_model=UserResponse)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """用户注册"""
    if not request.email.strip() or not request.name.strip() or not request.password:
        raise HTTPException(status_code=422, detail="邮箱、姓名和密码均不能为空")

    user, message = register_user(db, request.email, request.name, request.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """获取当前用户信息"""
    return UserResponse.model_validate(current_user)
