"""
通用工具函数模块
"""
import hashlib
import re


def calculate_md5(file_bytes: bytes) -> str:
    """计算文件的MD5哈希值"""
    return hashlib.md5(file_bytes).hexdigest()


def sanitize_filename(filename: str) -> str:
    """清理文件名，移除不安全字符"""
    filename = re.sub(r'[<>:"/\\|?*]', '_', filename)
    if len(filename) > 200:
        filename = filename[:200]
    return filename


def format_file_size(size: int) -> str:
    """把字节数格式化为易读的字符串"""
    value = float(size or 0)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
