from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mediahub.models.files.file_record import FileRecord
from mediahub.repo.crud.common.base_repo import BaseRepository
from mediahub.schemas.common.page_schemas import PageResponse
from mediahub.schemas.file.file_record_schemas import FileRecordCreate


class FileRecordRepository(BaseRepository[FileRecord, FileRecordCreate]):
    """
    FileRecordRepository 提供了所有与文件记录数据库操作相关的方法。
    除 create 以外的所有方法都以上传者 ID 做范围限定，
    “不存在” 与 “不属于当前用户” 在调用方看来没有区别。
    """
    default_ordering = ["-uploaded_at"]

    def __init__(self, db: AsyncSession):
        super().__init__(db, FileRecord)

    async def get_owned(self, file_id: UUID, owner_id: str) -> Optional[FileRecord]:
        stmt = self._base_stmt().where(
            FileRecord.id == file_id,
            FileRecord.uploaded_by == owner_id,
        )
        return await self._run_and_scalar(stmt, "get_owned")

    async def get_owned_by_ids(self, file_ids: List[UUID], owner_id: str) -> List[FileRecord]:
        if not file_ids:
            return []
        stmt = self._base_stmt().where(
            FileRecord.id.in_(file_ids),
            FileRecord.uploaded_by == owner_id,
        )
        return await self._run_and_scalars(stmt, "get_owned_by_ids")

    async def delete_owned(self, file_id: UUID, owner_id: str) -> int:
        return await self.delete_where(
            FileRecord.id == file_id,
            FileRecord.uploaded_by == owner_id,
        )

    async def delete_owned_by_ids(self, file_ids: List[UUID], owner_id: str) -> int:
        if not file_ids:
            return 0
        return await self.delete_where(
            FileRecord.id.in_(file_ids),
            FileRecord.uploaded_by == owner_id,
        )

    async def search_owned(
            self,
            owner_id: str,
            *,
            page: int,
            per_page: int,
            filters: Optional[Dict[str, Any]] = None,
            sort_by: Optional[List[str]] = None,
    ) -> PageResponse[FileRecord]:
        """
        上传者范围内的分页搜索。owner 条件总是强制加入，调用方无法覆盖。
        """
        scoped_filters = dict(filters or {})
        scoped_filters.pop("uploaded_by", None)
        stmt = self._base_stmt().where(FileRecord.uploaded_by == owner_id)
        return await self.get_paged_list(
            page=page,
            per_page=per_page,
            filters=scoped_filters,
            sort_by=sort_by,
            stmt_in=stmt,
        )
