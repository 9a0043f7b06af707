from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, BigInteger, DateTime
from sqlmodel import Field

from mediahub.models._model_utils.datetime import utcnow
from mediahub.models.base.base_model import BaseModel


class FileRecord(BaseModel, table=True):
    """
    一个逻辑文件的元数据记录。
    只持久化原始对象的键 (s3_key)，预览/封面对象的键在删除时根据 s3_key 重新推导。
    """
    __tablename__ = "file_record"

    # --- 核心元数据 ---
    filename: str = Field(..., description="客户端提供的原始文件名，仅用于展示和扩展名识别")
    mime_type: str = Field(..., index=True, description="检测到的 MIME 类型，检测失败时回退到客户端声明值")
    category: str = Field(..., index=True, description="媒体类别: image/video/audio/document/other")
    size: int = Field(..., sa_type=BigInteger, description="原始文件大小（字节）")

    # --- 对象存储 ---
    s3_key: str = Field(
        ...,
        unique=True,
        index=True,
        description="原始文件在对象存储中的唯一键"
    )
    src: str = Field(..., description="原始文件的公开访问 URL")
    preview: str = Field(..., description="预览图 URL，没有派生对象时等于 src")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_type=JSON,
        description="{width, height, duration, src, preview}"
    )

    # --- 归属 ---
    uploaded_by: str = Field(..., index=True, description="上传者 ID，所有读写都以此字段做范围限定")
    uploaded_at: datetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=True),
        index=True,
    )
