from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from mediahub.api.dependencies.identity import get_current_owner
from mediahub.api.dependencies.services import (
    get_file_record_service,
    get_ingestion_service,
    get_lifecycle_service,
)
from mediahub.config.settings import settings
from mediahub.core.api_response import StandardResponse, response_success
from mediahub.core.exceptions import FileTooLargeException
from mediahub.core.response_codes import ResponseCodeEnum
from mediahub.enums.file_enums import MediaCategory
from mediahub.schemas.file.file_record_schemas import (
    BulkDeletePayload,
    BulkDeleteResult,
    FileDeleteResult,
    FileRecordDetail,
    FileRecordRead,
    FileSearchParams,
    FileSearchResult,
)
from mediahub.services.file.file_record_service import FileRecordService, clamp_limit, clamp_page
from mediahub.services.file.ingestion_service import IngestionService
from mediahub.services.file.lifecycle_service import LifecycleService


# ==============================================================================
#                            API 路由定义
# ==============================================================================

router = APIRouter()


@router.post(
    "",
    response_model=StandardResponse[FileRecordRead],
    status_code=status.HTTP_201_CREATED,
    summary="上传媒体文件"
)
async def upload_file(
    file: Optional[UploadFile] = File(None, description="要上传的图片、视频或音频文件"),
    owner_id: str = Depends(get_current_owner),
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    上传一个媒体文件，自动生成预览图 (图片) 或封面 (视频)，并返回完整的文件记录。
    """
    data = None
    if file is not None:
        media_config = settings.media
        # 声明的大小已超限时直接拒绝，否则最多读取 上限+1 字节，由 ingest 判定是否超限
        if file.size is not None and file.size > media_config.max_file_size_bytes:
            raise FileTooLargeException(media_config.max_file_size_mb, size=file.size)
        data = await file.read(media_config.max_file_size_bytes + 1)
    record = await service.ingest(
        owner_id=owner_id,
        data=data,
        filename=file.filename if file is not None else None,
        declared_mime_type=file.content_type if file is not None else None,
        declared_size=file.size if file is not None else None,
    )
    return response_success(
        data=record,
        code=ResponseCodeEnum.CREATED,
        http_status=status.HTTP_201_CREATED,
        message="文件上传成功",
    )


@router.get(
    "/search",
    response_model=StandardResponse[FileSearchResult],
    summary="分页搜索当前用户的文件"
)
async def search_files(
    query: Optional[str] = Query(None, description="文件名子串，不区分大小写"),
    category: Optional[MediaCategory] = Query(None, alias="type", description="媒体类别"),
    mime_type: Optional[str] = Query(None, alias="mimeType"),
    min_size: Optional[int] = Query(None, alias="minSize"),
    max_size: Optional[int] = Query(None, alias="maxSize"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: Optional[str] = Query(None, description="页码，小于 1 或非数字时按 1 处理"),
    limit: Optional[str] = Query(None, description="每页数量，钳制在 1-100 之间，非数字时为 20"),
    sort_by: str = Query("uploadedAt", alias="sortBy", description="uploadedAt | size | originalName"),
    sort_order: str = Query("desc", alias="sortOrder", description="asc | desc"),
    owner_id: str = Depends(get_current_owner),
    service: FileRecordService = Depends(get_file_record_service),
):
    params = FileSearchParams(
        query=query,
        category=category,
        mime_type=mime_type,
        min_size=min_size,
        max_size=max_size,
        start_date=start_date,
        end_date=end_date,
        page=clamp_page(page),
        limit=clamp_limit(limit),
        sort_by=sort_by,
        sort_order=sort_order,
    )
    result = await service.search_files(owner_id, params)
    return response_success(data=result, message="获取文件列表成功")


@router.post(
    "/bulk-delete",
    response_model=StandardResponse[BulkDeleteResult],
    summary="批量删除文件"
)
async def bulk_delete_files(
    payload: BulkDeletePayload,
    owner_id: str = Depends(get_current_owner),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """
    一次最多删除 100 个文件。只会删除属于当前用户的文件，其余 ID 被静默忽略。
    """
    result = await service.bulk_delete(owner_id, payload.file_ids)
    return response_success(data=result, message=f"成功删除 {result.deleted_count} 个文件")


@router.get(
    "/{file_id}",
    response_model=StandardResponse[FileRecordDetail],
    summary="获取单个文件详情"
)
async def get_file(
    file_id: str,
    owner_id: str = Depends(get_current_owner),
    service: FileRecordService = Depends(get_file_record_service),
):
    record = await service.get_file_detail(owner_id, file_id)
    return response_success(data=record)


@router.delete(
    "/{file_id}",
    response_model=StandardResponse[FileDeleteResult],
    summary="删除单个文件及其预览对象"
)
async def delete_file(
    file_id: str,
    owner_id: str = Depends(get_current_owner),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    result = await service.delete_file(owner_id, file_id)
    return response_success(data=result, message="文件已删除")
