from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from mediahub.enums.file_enums import MediaCategory, SortField, SortOrder


class MediaDetails(BaseModel):
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None
    src: Optional[str] = None
    preview: Optional[str] = None


# 用于创建文件记录的 Schema
class FileRecordCreate(BaseModel):
    filename: str
    mime_type: str
    category: MediaCategory
    size: int
    s3_key: str
    src: str
    preview: str
    details: MediaDetails
    uploaded_by: str


class FileRecordRead(BaseModel):
    """
    用于从 API 返回文件记录信息的模型。
    """
    id: UUID
    filename: str = Field(..., description="文件的原始名称")
    mime_type: str = Field(..., description="文件的 MIME 类型")
    category: MediaCategory
    size: int = Field(..., description="文件大小（字节）")
    s3_key: str = Field(..., description="原始文件在对象存储中的唯一键")
    src: str
    preview: str
    details: Optional[MediaDetails] = None
    uploaded_by: str
    uploaded_at: datetime

    # 允许从 ORM 对象模型进行转换
    model_config = {
        "from_attributes": True
    }


class FileRecordDetail(FileRecordRead):
    """单个文件详情，额外附带下载/预览地址"""

    @computed_field
    @property
    def has_preview(self) -> bool:
        return self.preview != self.src

    @computed_field
    @property
    def download_url(self) -> str:
        return self.src

    @computed_field
    @property
    def preview_url(self) -> str:
        return self.preview


# ==========================
# 搜索
# ==========================

class FileSearchParams(BaseModel):
    """
    文件搜索参数。分页参数在 Service 层做钳制，这里不做范围校验。
    """
    query: Optional[str] = Field(None, description="按文件名进行不区分大小写的子串匹配")
    category: Optional[MediaCategory] = Field(None, description="按媒体类别过滤")
    mime_type: Optional[str] = Field(None, description="按 MIME 类型精确过滤")
    min_size: Optional[int] = None
    max_size: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = 1
    limit: int = 20
    sort_by: Optional[str] = SortField.UPLOADED_AT.value
    sort_order: Optional[str] = SortOrder.DESC.value


class FileSearchFilters(BaseModel):
    """回显实际生效的过滤条件"""
    query: Optional[str] = None
    type: Optional[MediaCategory] = None
    mime_type: Optional[str] = None
    min_size: Optional[int] = None
    max_size: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    sort_by: SortField
    sort_order: SortOrder


class PaginationInfo(BaseModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_previous_page: bool


class FileSearchResult(BaseModel):
    items: List[FileRecordRead]
    has_more: bool
    pagination: PaginationInfo
    filters: FileSearchFilters


# ==========================
# 删除
# ==========================

class DeletedFileSummary(BaseModel):
    id: UUID
    filename: str
    s3_key: str

    model_config = {
        "from_attributes": True
    }


class FileDeleteResult(BaseModel):
    deleted_file: DeletedFileSummary
    deleted_keys: List[str] = Field(..., description="本次尝试删除的全部对象键")


class BulkDeletePayload(BaseModel):
    file_ids: Optional[List[str]] = Field(None, description="要删除的文件 ID 列表 (1-100 个)")


class BulkDeleteResult(BaseModel):
    deleted_count: int
    s3_objects_deleted: int
    deleted_files: List[DeletedFileSummary]
