from typing import Optional

from pydantic import BaseModel, Field

from mediahub.enums.file_enums import DerivativeRole


class MediaMetadata(BaseModel):
    """探测得到的媒体元数据，所有字段都可能缺失"""
    mime_type: Optional[str] = Field(None, description="根据文件签名检测到的 MIME 类型")
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = Field(None, description="音视频时长（秒）")


class DerivedPreview(BaseModel):
    """派生出的预览图或视频封面"""
    role: DerivativeRole
    data: bytes
    content_type: str = "image/jpeg"
    width: Optional[int] = None
    height: Optional[int] = None
