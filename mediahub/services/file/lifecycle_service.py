from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from mediahub.core.exceptions import (
    FileNotFoundException,
    InvalidFileIdException,
    InvalidFileIdsException,
    InvalidRequestException,
    PersistenceFailureException,
    TooManyFilesException,
    UnauthorizedException,
)
from mediahub.infra.db.repository_factory import RepositoryFactory
from mediahub.repo.crud.file.file_record_repo import FileRecordRepository
from mediahub.schemas.file.file_record_schemas import (
    BulkDeleteResult,
    DeletedFileSummary,
    FileDeleteResult,
)
from mediahub.services._base_service import BaseService
from mediahub.services.file.file_service import FileService
from mediahub.services.media.object_keys import reconstruct_keys


def parse_file_id(raw_id) -> Optional[UUID]:
    """合法的文件 ID 是 UUID 字符串；不合法时返回 None"""
    if isinstance(raw_id, UUID):
        return raw_id
    if not isinstance(raw_id, str):
        return None
    try:
        return UUID(raw_id.strip())
    except ValueError:
        return None


class LifecycleService(BaseService):
    """
    文件删除服务。

    删除顺序固定为: 先删对象存储中的对象 (单个对象失败只记日志)，再删数据库记录。
    对象删除失败会留下孤儿对象，但不会留下指向缺失对象的记录。
    """

    def __init__(self, repo_factory: RepositoryFactory, file_service: FileService):
        super().__init__()
        self.file_service = file_service
        self.file_repo: FileRecordRepository = repo_factory.get_repo_by_type(FileRecordRepository)

    async def delete_file(self, owner_id: str, raw_file_id: str) -> FileDeleteResult:
        if not owner_id:
            raise UnauthorizedException()

        file_id = parse_file_id(raw_file_id)
        if file_id is None:
            raise InvalidFileIdException(file_id=str(raw_file_id))

        record = await self.file_repo.get_owned(file_id, owner_id)
        if record is None:
            raise FileNotFoundException()

        keys = reconstruct_keys(record)
        failed = await self.file_service.delete_files(keys)
        for key in failed:
            self.logger.warning(f"Object {key} of file {file_id} could not be deleted and may be orphaned")

        summary = DeletedFileSummary.model_validate(record)
        try:
            await self.file_repo.delete_owned(file_id, owner_id)
            await self.file_repo.commit()
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to delete file record {file_id}: {e}")
            await self.file_repo.rollback()
            raise PersistenceFailureException(message="File objects removed but the record could not be deleted.")

        self.logger.info(f"Deleted file {file_id} for owner {owner_id}: {keys}")
        return FileDeleteResult(deleted_file=summary, deleted_keys=keys)

    async def bulk_delete(self, owner_id: str, raw_file_ids: Optional[List[str]]) -> BulkDeleteResult:
        if not owner_id:
            raise UnauthorizedException()

        # 1. 数量校验在任何查询之前完成
        if not isinstance(raw_file_ids, list) or not raw_file_ids:
            raise InvalidRequestException(message="file_ids must be a non-empty array.")

        max_files = self.settings.media.max_bulk_delete
        if len(raw_file_ids) > max_files:
            raise TooManyFilesException(max_files=max_files, received=len(raw_file_ids))

        # 2. 任意一个 ID 不合法则整批拒绝
        invalid_ids = [str(raw) for raw in raw_file_ids if parse_file_id(raw) is None]
        if invalid_ids:
            raise InvalidFileIdsException(invalid_ids=invalid_ids)

        file_ids = list(dict.fromkeys(parse_file_id(raw) for raw in raw_file_ids))

        # 3. 只取当前用户拥有的记录，其余的静默忽略
        records = await self.file_repo.get_owned_by_ids(file_ids, owner_id)
        if not records:
            self.logger.info(f"Bulk delete for owner {owner_id} matched no files")
            return BulkDeleteResult(deleted_count=0, s3_objects_deleted=0, deleted_files=[])

        # 4. 分批删除对象，再一次性删除记录
        keys = [key for record in records for key in reconstruct_keys(record)]
        s3_objects_deleted = await self.file_service.delete_files_in_batches(keys)

        summaries = [DeletedFileSummary.model_validate(record) for record in records]
        try:
            deleted_count = await self.file_repo.delete_owned_by_ids([record.id for record in records], owner_id)
            await self.file_repo.commit()
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to delete {len(records)} file records: {e}")
            await self.file_repo.rollback()
            raise PersistenceFailureException(message="File objects removed but the records could not be deleted.")

        if s3_objects_deleted < len(keys):
            self.logger.warning(
                f"Bulk delete confirmed {s3_objects_deleted} of {len(keys)} objects; the rest may be orphaned"
            )
        self.logger.info(f"Bulk deleted {deleted_count} files for owner {owner_id}")
        return BulkDeleteResult(
            deleted_count=deleted_count,
            s3_objects_deleted=s3_objects_deleted,
            deleted_files=summaries,
        )
