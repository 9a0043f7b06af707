"""
对象键命名规则。

一个逻辑文件对应一个原始对象和至多一个派生对象:

    {prefix}/{owner}/{YYYY-MM-DD}/{file_id}-{filename}     原始对象
    {prefix}/{owner}/{YYYY-MM-DD}/preview-{file_id}.jpg    图片预览
    {prefix}/{owner}/{YYYY-MM-DD}/poster-{file_id}.jpg     视频封面

数据库只保存原始对象的键，派生对象的键在删除时通过 reconstruct_keys 重新推导。
file_id 使用不含 '-' 的 32 位十六进制 UUID，所以从最后一段按第一个 '-'
切分总能还原出 file_id，与文件名里有多少个 '-' 无关。
"""
from datetime import date, datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from mediahub.enums.file_enums import DerivativeRole, MediaCategory

DERIVATIVE_EXTENSION = "jpg"

# 每个类别的派生对象角色；不在表中的类别没有派生对象
DERIVATIVE_ROLES: Dict[MediaCategory, DerivativeRole] = {
    MediaCategory.IMAGE: DerivativeRole.PREVIEW,
    MediaCategory.VIDEO: DerivativeRole.POSTER,
}


def generate_file_id() -> str:
    return uuid4().hex


def sanitize_filename(filename: Optional[str]) -> str:
    """路径分隔符会改变键的层级，替换掉；空文件名用 'file' 代替"""
    cleaned = (filename or "").replace("/", "_").replace("\\", "_").strip()
    return cleaned or "file"


def build_primary_key(
        owner_id: str,
        file_id: str,
        filename: Optional[str],
        upload_date: Optional[date] = None,
        prefix: str = "uploads",
) -> str:
    upload_date = upload_date or datetime.now(timezone.utc).date()
    return f"{prefix}/{owner_id}/{upload_date.isoformat()}/{file_id}-{sanitize_filename(filename)}"


def build_derivative_key(primary_key: str, role: DerivativeRole, file_id: str) -> str:
    base_path = primary_key.rpartition("/")[0]
    return f"{base_path}/{DerivativeRole(role).value}-{file_id}.{DERIVATIVE_EXTENSION}"


def extract_file_id(primary_key: str) -> str:
    last_segment = primary_key.rpartition("/")[2]
    return last_segment.split("-", 1)[0]


def reconstruct_keys(record) -> List[str]:
    """
    根据持久化的记录推导出它拥有的全部对象键。
    原始键总是包含在内；只有类别存在派生角色且 preview != src 时才附加派生键。
    """
    keys = [record.s3_key]

    try:
        category = MediaCategory(record.category)
    except ValueError:
        return keys

    role = DERIVATIVE_ROLES.get(category)
    if role is not None and record.preview != record.src:
        keys.append(build_derivative_key(record.s3_key, role, extract_file_id(record.s3_key)))
    return keys
