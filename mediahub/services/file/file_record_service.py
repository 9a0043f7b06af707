from typing import Any, Dict

from mediahub.core.exceptions import FileNotFoundException, InvalidFileIdException, UnauthorizedException
from mediahub.enums.file_enums import SortField, SortOrder
from mediahub.infra.db.repository_factory import RepositoryFactory
from mediahub.repo.crud.file.file_record_repo import FileRecordRepository
from mediahub.schemas.file.file_record_schemas import (
    FileRecordDetail,
    FileRecordRead,
    FileSearchFilters,
    FileSearchParams,
    FileSearchResult,
    PaginationInfo,
)
from mediahub.services._base_service import BaseService
from mediahub.services.file.lifecycle_service import parse_file_id

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

# 对外排序字段 -> 模型列名
SORT_COLUMNS = {
    SortField.UPLOADED_AT: "uploaded_at",
    SortField.SIZE: "size",
    SortField.ORIGINAL_NAME: "filename",
}


def clamp_page(page) -> int:
    try:
        return max(DEFAULT_PAGE, int(page))
    except (TypeError, ValueError):
        return DEFAULT_PAGE


def clamp_limit(limit) -> int:
    try:
        return min(MAX_LIMIT, max(1, int(limit)))
    except (TypeError, ValueError):
        return DEFAULT_LIMIT


def resolve_sort(sort_by, sort_order) -> tuple[SortField, SortOrder]:
    """未知的排序字段/方向回退到默认值 uploadedAt / desc"""
    try:
        field = SortField(sort_by)
    except ValueError:
        field = SortField.UPLOADED_AT
    try:
        order = SortOrder(str(sort_order).lower())
    except ValueError:
        order = SortOrder.DESC
    return field, order


class FileRecordService(BaseService):
    """
    文件记录查询服务。
    所有查询都以当前上传者为范围，其他用户的记录对调用方不可见。
    """

    def __init__(self, repo_factory: RepositoryFactory):
        super().__init__()
        self.file_repo: FileRecordRepository = repo_factory.get_repo_by_type(FileRecordRepository)

    async def get_file_detail(self, owner_id: str, raw_file_id: str) -> FileRecordDetail:
        if not owner_id:
            raise UnauthorizedException()

        file_id = parse_file_id(raw_file_id)
        if file_id is None:
            raise InvalidFileIdException(file_id=str(raw_file_id))

        record = await self.file_repo.get_owned(file_id, owner_id)
        if record is None:
            raise FileNotFoundException()
        return FileRecordDetail.model_validate(record)

    async def search_files(self, owner_id: str, params: FileSearchParams) -> FileSearchResult:
        if not owner_id:
            raise UnauthorizedException()

        page = clamp_page(params.page)
        limit = clamp_limit(params.limit)
        sort_field, sort_order = resolve_sort(params.sort_by, params.sort_order)

        filters: Dict[str, Any] = {
            "filename__ilike": params.query,
            "category": params.category.value if params.category else None,
            "mime_type": params.mime_type,
            "size__ge": params.min_size,
            "size__le": params.max_size,
            "uploaded_at__ge": params.start_date,
            "uploaded_at__le": params.end_date,
        }
        column = SORT_COLUMNS[sort_field]
        sort_by = [f"-{column}" if sort_order == SortOrder.DESC else column, "id"]

        page_data = await self.file_repo.search_owned(
            owner_id,
            page=page,
            per_page=limit,
            filters=filters,
            sort_by=sort_by,
        )

        has_next_page = page < page_data.total_pages
        pagination = PaginationInfo(
            current_page=page,
            total_pages=page_data.total_pages,
            total_count=page_data.total,
            limit=limit,
            has_next_page=has_next_page,
            has_previous_page=page > 1,
        )
        echoed = FileSearchFilters(
            query=params.query,
            type=params.category,
            mime_type=params.mime_type,
            min_size=params.min_size,
            max_size=params.max_size,
            start_date=params.start_date,
            end_date=params.end_date,
            sort_by=sort_field,
            sort_order=sort_order,
        )
        return FileSearchResult(
            items=[FileRecordRead.model_validate(item) for item in page_data.items],
            has_more=has_next_page,
            pagination=pagination,
            filters=echoed,
        )
