"""
身份会话模块 - 持有当前登录用户，并管理 loading / 匿名 / 已登录 三种状态
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from errors import RemoteError
from log_service import auth_logger, get_logger

logger = get_logger("session")


@dataclass(frozen=True)
class Principal:
    """已认证用户，会话期间不可变"""
    id: int
    email: str
    name: str
    is_admin: bool
    token: str = ""

    @classmethod
    def from_dict(cls, data: dict, token: str = "") -> "Principal":
        return cls(
            id=data["id"],
            email=data.get("email", ""),
            name=data.get("name", ""),
            is_admin=bool(data.get("is_admin", False)),
            token=token,
        )


class SessionState(str, Enum):
    LOADING = "loading"
    ANONYMOUS = "ready-anonymous"
    AUTHENTICATED = "ready-authenticated"


# ================= 凭据存储 =================
class CredentialStore:
    """默认的内存凭据存储，Streamlit 界面会替换为基于 session_state 的实现"""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def load(self) -> Optional[str]:
        return self._token

    def save(self, token: str):
        self._token = token

    def clear(self):
        self._token = None


class IdentitySession:
    """
    显式持有的身份会话

    启动时处于 LOADING，resolve() 之后变为匿名或已登录。
    LOADING 期间视图路由不做任何跳转判断。
    """

    def __init__(self, store: Optional[CredentialStore] = None):
        self.store = store or CredentialStore()
        self.state = SessionState.LOADING
        self.user: Optional[Principal] = None

    @property
    def is_loading(self) -> bool:
        return self.state == SessionState.LOADING

    @property
    def has_session(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    @property
    def is_admin(self) -> bool:
        return self.has_session and self.user.is_admin

    @property
    def token(self) -> Optional[str]:
        return self.user.token if self.user else self.store.load()

    def resolve(self, fetch_user: Callable[[str], dict]) -> SessionState:
        """
        用已存储的凭据恢复会话

        Args:
            fetch_user: 根据 token 获取用户信息（GET /me）

        401 时清除凭据并进入匿名状态，其它远程错误向上抛出。
        """
        token = self.store.load()
        if not token:
            self._set_anonymous()
            return self.state
        try:
            data = fetch_user(token)
        except RemoteError as e:
            if not e.is_unauthorized:
                raise
            logger.info("已存储的凭据失效，转为匿名会话")
            self.store.clear()
            self._set_anonymous()
            return self.state
        self.user = Principal.from_dict(data, token=token)
        self.state = SessionState.AUTHENTICATED
        return self.state

    def login(self, user: Principal):
        """匿名 -> 已登录，同时保存凭据"""
        if user.token:
            self.store.save(user.token)
        self.user = user
        self.state = SessionState.AUTHENTICATED
        auth_logger.log_login(user.email, True)

    def logout(self):
        """已登录 -> 匿名，并清除已存储的凭据"""
        if self.user:
            auth_logger.log_logout(self.user.email)
        self.store.clear()
        self._set_anonymous()

    def force_anonymous(self):
        """后端返回 401 时调用"""
        self.store.clear()
        self._set_anonymous()

    def _set_anonymous(self):
        self.user = None
        self.state = SessionState.ANONYMOUS
