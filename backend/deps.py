"""
依赖项模块 - 数据库会话、JWT 认证与角色校验

Token 中除用户 ID 外还记录了签发时的管理员标记。会话期间身份不可变，
如果用户的管理员标记此后发生变化，旧 Token 一律视为失效，需要重新登录。
"""
import os
from datetime import datetime, timedelta
from typing import Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session
from dotenv import load_dotenv

from db_models import User, Session as DBSession

load_dotenv()


# ================= 数据库会话 =================
def get_db() -> Generator[Session, None, None]:
    """获取数据库会话"""
    db = DBSession()
    try:
        yield db
    finally:
        db.close()


# ================= JWT 配置 =================
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "coursepapers-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login")


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """为登录用户签发 JWT Token"""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "adm": bool(user.is_admin),
        "exp": expire,
    }
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="无效的认证凭据",
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> tuple[int, bool]:
    """解析 Token，返回 (用户 ID, 签发时的管理员标记)"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = int(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise _credentials_exception()
    return user_id, bool(payload.get("adm", False))


# ================= 当前身份 =================
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """从 JWT Token 解析当前用户"""
    user_id, issued_as_admin = decode_access_token(token)

    user = db.get(User, user_id)
    if user is None or bool(user.is_admin) != issued_as_admin:
        raise _credentials_exception()
    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """确保当前用户是管理员（审核、课程维护）"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="需要管理员权限"
        )
    return current_user


async def get_current_student(current_user: User = Depends(get_current_user)) -> User:
    """确保当前用户是学生（提交论文）"""
    if current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="管理员账户不能提交论文"
        )
    return current_user
