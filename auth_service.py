"""
认证服务模块 - 处理用户登录和注册
"""
import hashlib
import hmac
import os

from sqlalchemy.orm import Session

from db_models import User
from log_service import auth_logger

_HASH_ITERATIONS = 100_000


def make_password_hash(password: str, salt: str = None) -> str:
    """加盐密码哈希，格式为 salt$hex"""
    salt = salt or os.urandom(16).hex()
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), _HASH_ITERATIONS)
    return f"{salt}${digest.hex()}"


def check_password(password: str, password_hash: str) -> bool:
    salt, _, _ = password_hash.partition("$")
    return hmac.compare_digest(make_password_hash(password, salt), password_hash)


def verify_user(db: Session, email: str, password: str) -> User | None:
    """验证用户登录"""
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if user and check_password(password, user.password_hash):
        auth_logger.log_login(user.email, True)
        return user
    auth_logger.log_login(email, False)
    return None


def register_user(db: Session, email: str, name: str, password: str) -> tuple[User | None, str]:
    """注册新用户"""
    email = email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        auth_logger.log_register(email, False)
        return None, "该邮箱已注册"

    # 如果是第一个注册用户，自动设为管理员
    is_admin = db.query(User).count() == 0

    new_user = User(
        email=email,
        name=name.strip(),
        password_hash=make_password_hash(password),
        is_admin=is_admin
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    auth_logger.log_register(email, True)
    return new_user, "注册成功"
