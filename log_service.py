"""
日志服务模块 - 为整个项目提供统一的日志记录功能
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

load_dotenv()

# ================= 日志配置 =================
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_FILE = "coursepapers.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_SIZE = 5 * 1024 * 1024  # 5MB
BACKUP_COUNT = 3


def _add_handlers(logger: logging.Logger):
    """为日志记录器添加处理器"""
    os.makedirs(LOG_DIR, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    # 文件处理器（带轮转）
    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, LOG_FILE),
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # 控制台处理器（简化输出）
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(levelname)-8s | %(message)s"))
    logger.addHandler(console_handler)


def setup_logging(level: str = None, enabled: bool = True) -> logging.Logger:
    """
    配置并返回根日志记录器

    Args:
        level: 日志级别 (DEBUG, INFO, WARNING, ERROR)，默认读取 LOG_LEVEL
        enabled: 是否启用日志

    Returns:
        配置好的根日志记录器
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # 清除现有处理器（避免重复）
    root_logger.handlers.clear()

    if enabled:
        _add_handlers(root_logger)
    else:
        root_logger.addHandler(logging.NullHandler())

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """获取指定名称的日志记录器"""
    return logging.getLogger(name)


# ================= 专用日志记录器 =================

class SubmissionLogger:
    """论文提交专用日志记录器"""

    def __init__(self):
        self.logger = get_logger("submission")

    def log_submitted(self, user_id: int, paper_id: int, course: str, file_name: str):
        """记录提交成功"""
        self.logger.info(f"📄 用户 {user_id} 提交论文 #{paper_id} ({course}): {file_name}")

    def log_course_created(self, code: str):
        """记录提交时自动创建的课程"""
        self.logger.info(f"🆕 提交时新建课程: {code}")

    def log_rejected_input(self, user_id, error: str):
        """记录被本地校验拦截的提交"""
        self.logger.warning(f"⚠️ 用户 {user_id} 的提交未通过校验: {error}")


class ReviewLogger:
    """审核操作专用日志记录器"""

    def __init__(self):
        self.logger = get_logger("review")

    def log_transition(self, paper_id: int, old: str, new: str, reviewer_id: int):
        """记录状态变更"""
        self.logger.info(f"✅ 论文 #{paper_id}: {old} -> {new} (审核人 {reviewer_id})")

    def log_refused(self, paper_id: int, reason: str):
        """记录被拒绝的审核操作"""
        self.logger.warning(f"⛔ 论文 #{paper_id} 审核被拒绝: {reason}")


class ClientLogger:
    """前端请求专用日志记录器"""

    def __init__(self):
        self.logger = get_logger("client")

    def log_request(self, method: str, path: str):
        self.logger.debug(f"📡 {method} {path}")

    def log_remote_error(self, method: str, path: str, status_code: int, message: str):
        self.logger.error(f"❌ {method} {path} -> HTTP {status_code}: {message}")

    def log_stale(self, seq: int, snapshot):
        self.logger.debug(f"⏭️ 丢弃过期的列表响应 #{seq}: {snapshot}")


class AuthLogger:
    """认证操作专用日志记录器"""

    def __init__(self):
        self.logger = get_logger("auth")

    def log_login(self, email: str, success: bool):
        """记录登录"""
        if success:
            self.logger.info(f"🔓 用户登录成功: {email}")
        else:
            self.logger.warning(f"🔒 登录失败: {email}")

    def log_register(self, email: str, success: bool):
        """记录注册"""
        if success:
            self.logger.info(f"✅ 用户注册成功: {email}")
        else:
            self.logger.warning(f"❌ 注册失败: {email}")

    def log_logout(self, email: str):
        """记录登出"""
        self.logger.info(f"👋 用户登出: {email}")


# ================= 全局日志实例 =================
# 在模块加载时初始化日志系统
setup_logging()

submission_logger = SubmissionLogger()
review_logger = ReviewLogger()
client_logger = ClientLogger()
auth_logger = AuthLogger()
