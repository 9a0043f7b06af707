from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from mediahub.core.exceptions import (
    FileTooLargeException,
    NoFileException,
    PersistenceFailureException,
    StorageFailureException,
    UnauthorizedException,
    UnsupportedMediaTypeException,
)
from mediahub.infra.db.repository_factory import RepositoryFactory
from mediahub.repo.crud.file.file_record_repo import FileRecordRepository
from mediahub.schemas.file.file_record_schemas import FileRecordCreate, FileRecordRead, MediaDetails
from mediahub.services._base_service import BaseService
from mediahub.services.file.file_service import FileService
from mediahub.services.media import object_keys
from mediahub.services.media.classifier import classify_media, normalize_mime_type
from mediahub.services.media.preview import PreviewDeriver
from mediahub.services.media.prober import MediaProber


class IngestionService(BaseService):
    """
    上传编排服务。

    一次上传是一条顺序流水线:
    校验 -> 生成对象键 -> 分类 -> 探测 -> 派生预览 -> 写原始对象 -> 写派生对象 -> 插入记录。

    对象存储和数据库之间没有分布式事务。写对象在前、插入记录在后，
    插入失败时尽力删除已写入的对象；删除也失败的对象以 ORPHAN 记录到日志，
    保证不会出现指向不存在对象的记录。
    """

    def __init__(
            self,
            repo_factory: RepositoryFactory,
            file_service: FileService,
            prober: Optional[MediaProber] = None,
            deriver: Optional[PreviewDeriver] = None,
    ):
        super().__init__()
        self.media_config = self.settings.media
        self.file_service = file_service
        self.file_repo: FileRecordRepository = repo_factory.get_repo_by_type(FileRecordRepository)
        self.prober = prober or MediaProber(self.media_config)
        self.deriver = deriver or PreviewDeriver(self.media_config)

    async def ingest(
            self,
            owner_id: Optional[str],
            data: Optional[bytes],
            filename: Optional[str],
            declared_mime_type: Optional[str] = None,
            declared_size: Optional[int] = None,
    ) -> FileRecordRead:
        # 1. 身份与文件是否存在
        if not owner_id:
            raise UnauthorizedException()
        if data is None:
            raise NoFileException()

        # 2. 大小限制在任何解析之前检查
        size = len(data)
        max_bytes = self.media_config.max_file_size_bytes
        if size > max_bytes or (declared_size or 0) > max_bytes:
            raise FileTooLargeException(self.media_config.max_file_size_mb, size=max(size, declared_size or 0))

        # 3. 生成对象键
        file_id = object_keys.generate_file_id()
        s3_key = object_keys.build_primary_key(
            owner_id, file_id, filename, prefix=self.media_config.upload_key_prefix
        )

        # 4. 分类，不支持的类型在任何写入之前拒绝
        detected_mime = await run_in_threadpool(self.prober.detect_mime_type, data)
        mime_type = normalize_mime_type(detected_mime or declared_mime_type)
        category = classify_media(mime_type, filename)
        if not category.is_ingestible:
            self.logger.info(f"Rejected upload '{filename}' ({mime_type}) classified as {category.value}")
            raise UnsupportedMediaTypeException(mime_type=mime_type, category=category.value)

        # 5. 探测元数据并派生预览
        metadata = await run_in_threadpool(self.prober.probe, data, mime_type)
        derived = await run_in_threadpool(self.deriver.derive, category, data, metadata)

        # 6. 写入原始对象
        written_keys: List[str] = []
        src = await self.file_service.upload_bytes(s3_key, data, mime_type)
        written_keys.append(s3_key)

        # 7. 写入派生对象；失败时清理已写入的原始对象
        preview = src
        if derived is not None:
            derivative_key = object_keys.build_derivative_key(s3_key, derived.role, file_id)
            try:
                preview = await self.file_service.upload_bytes(derivative_key, derived.data, derived.content_type)
            except StorageFailureException:
                await self._compensate(written_keys, reason="derivative upload failed")
                raise
            written_keys.append(derivative_key)

        # 8. 插入元数据记录
        record_in = FileRecordCreate(
            filename=filename or "file",
            mime_type=mime_type,
            category=category,
            size=size,
            s3_key=s3_key,
            src=src,
            preview=preview,
            details=MediaDetails(
                width=metadata.width,
                height=metadata.height,
                duration=metadata.duration,
                src=src,
                preview=preview,
            ),
            uploaded_by=owner_id,
        )
        try:
            record = await self.file_repo.create(record_in)
            await self.file_repo.commit()
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to persist file record for {s3_key}: {e}")
            await self.file_repo.rollback()
            await self._compensate(written_keys, reason="record insert failed")
            raise PersistenceFailureException()

        self.logger.info(
            f"Ingested {category.value} '{filename}' as {s3_key} "
            f"(size={size}, preview={'yes' if preview != src else 'no'})"
        )
        return FileRecordRead.model_validate(record)

    async def _compensate(self, written_keys: List[str], reason: str) -> None:
        """尽力删除本次上传已写入的对象，删除失败的对象以 ORPHAN 记录"""
        if not written_keys:
            return
        self.logger.warning(f"Compensating upload ({reason}): removing {written_keys}")
        failed = await self.file_service.delete_files(written_keys)
        for key in failed:
            self.logger.error(f"ORPHAN object left in storage after {reason}: {key}")
