# mediahub/api/dependencies/services.py
from functools import lru_cache

from fastapi import Depends

from mediahub.config.settings import settings
from mediahub.infra.db.repository_factory import RepositoryFactory, get_repository_factory
from mediahub.infra.storage.s3_client import S3CompatibleClient
from mediahub.services.file.file_record_service import FileRecordService
from mediahub.services.file.file_service import FileService
from mediahub.services.file.ingestion_service import IngestionService
from mediahub.services.file.lifecycle_service import LifecycleService


@lru_cache()
def get_file_service() -> FileService:
    """对象存储网关是进程级单例，首次使用时才创建 boto3 客户端。"""
    return FileService(client=S3CompatibleClient(settings.storage))


def get_ingestion_service(
    repo_factory: RepositoryFactory = Depends(get_repository_factory),
    file_service: FileService = Depends(get_file_service),
) -> IngestionService:
    return IngestionService(repo_factory, file_service=file_service)


def get_lifecycle_service(
    repo_factory: RepositoryFactory = Depends(get_repository_factory),
    file_service: FileService = Depends(get_file_service),
) -> LifecycleService:
    return LifecycleService(repo_factory, file_service=file_service)


def get_file_record_service(
    repo_factory: RepositoryFactory = Depends(get_repository_factory),
) -> FileRecordService:
    return FileRecordService(repo_factory)
