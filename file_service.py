"""
文件存储服务模块
负责提交文件的持久化存储、读取、删除等操作
"""
import os
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv

from log_service import get_logger

load_dotenv()

logger = get_logger("file_service")

ALLOWED_EXTENSIONS = {".pdf", ".doc", ".docx", ".txt", ".zip", ".ppt", ".pptx"}
MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_MB", "20")) * 1024 * 1024


def get_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


class FileService:
    """文件存储服务"""

    def __init__(self, base_path: str = None):
        """
        初始化文件服务

        Args:
            base_path: 文件存储根路径，默认为 UPLOAD_DIR 或 uploads/papers
        """
        if base_path is None:
            root_dir = os.path.dirname(os.path.abspath(__file__))
            base_path = os.getenv("UPLOAD_DIR", os.path.join(root_dir, "uploads", "papers"))

        self.base_path = base_path
        os.makedirs(self.base_path, exist_ok=True)

        logger.info(f"文件服务初始化完成，存储路径: {self.base_path}")

    def _get_user_dir(self, user_id: int) -> str:
        """获取用户文件目录路径"""
        user_dir = os.path.join(self.base_path, f"user_{user_id}")
        os.makedirs(user_dir, exist_ok=True)
        return user_dir

    def _get_file_path(self, user_id: int, md5_hash: str, extension: str) -> str:
        return os.path.join(self._get_user_dir(user_id), f"{md5_hash}{extension}")

    def save_file(self, content: bytes, user_id: int, md5_hash: str,
                  original_filename: str) -> dict:
        """
        保存文件到用户目录

        Args:
            content: 文件内容（字节）
            user_id: 用户 ID
            md5_hash: 文件 MD5 哈希值
            original_filename: 原始文件名

        Returns:
            dict: 文件信息，包含 file_path, file_size, file_name, uploaded_at
        """
        file_path = self._get_file_path(user_id, md5_hash, get_extension(original_filename))

        with open(file_path, "wb") as f:
            f.write(content)

        relative_path = os.path.relpath(file_path, self.base_path)
        logger.info(f"文件保存成功: {relative_path}, 大小: {len(content)} 字节")

        return {
            "file_path": relative_path,
            "file_size": len(content),
            "file_name": original_filename,
            "uploaded_at": datetime.now(),
        }

    def get_file_path(self, relative_path: str) -> Optional[str]:
        """
        根据相对路径获取文件完整路径

        Returns:
            str | None: 文件完整路径，不存在则返回 None
        """
        file_path = os.path.join(self.base_path, relative_path)
        if os.path.exists(file_path):
            return file_path
        return None

    def delete_file(self, relative_path: str) -> bool:
        """根据相对路径删除文件，文件不存在也视为删除成功"""
        file_path = os.path.join(self.base_path, relative_path)

        if not os.path.exists(file_path):
            logger.warning(f"文件不存在，无需删除: {relative_path}")
            return True
        try:
            os.remove(file_path)
        except OSError as e:
            logger.error(f"文件删除失败: {e}")
            return False
        logger.info(f"文件删除成功: {relative_path}")
        return True


# 全局文件服务实例
file_service = FileService()
