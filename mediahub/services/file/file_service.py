import asyncio
import io
from asyncio import Semaphore
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from mediahub.core.exceptions import StorageFailureException
from mediahub.infra.storage.storage_interface import StorageClientInterface
from mediahub.services._base_service import BaseService

TRANSIENT_STORAGE_ERRORS = (ClientError, BotoCoreError)


class FileService(BaseService):
    """
    对象存储网关服务层。

    业务逻辑只通过这里读写对象存储: 写入带重试，阻塞的 boto3 调用放进线程池，
    所有底层异常最终都被转换为 StorageFailureException。
    """

    def __init__(self, client: StorageClientInterface, concurrency_limit: Optional[int] = None):
        super().__init__()
        self.client = client
        self.upload_semaphore = Semaphore(concurrency_limit or self.settings.media.upload_concurrency)

    def build_url(self, object_name: str) -> str:
        return self.client.build_final_url(object_name)

    # --- 上传 (Upload) ---

    @retry(
        retry=retry_if_exception_type(TRANSIENT_STORAGE_ERRORS),
        wait=wait_fixed(1),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _safe_upload(self, object_name: str, data: bytes, content_type: str) -> str:
        """内部核心上传方法，带重试。"""
        client_name = self.client.__class__.__name__
        self.logger.info(f"Uploading {object_name} using client: {client_name}")
        result = await run_in_threadpool(
            self.client.put_object,
            object_name=object_name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )
        etag = (result.get("ETag") or result.get("etag") or "").strip('"')
        self.logger.info(f"Upload successful for {object_name} (Client: {client_name})")
        return etag

    async def upload_bytes(self, object_name: str, data: bytes, content_type: str) -> str:
        """
        上传一段二进制数据并返回其公开 URL。
        """
        try:
            async with self.upload_semaphore:
                await self._safe_upload(object_name, data, content_type)
        except TRANSIENT_STORAGE_ERRORS as e:
            self.logger.error(f"Upload failed for {object_name}: {e}")
            raise StorageFailureException(message="Upload to object storage failed.")
        except Exception as e:
            self.logger.exception(f"Unexpected error during upload for {object_name}: {e}")
            raise StorageFailureException(message="An unexpected error occurred during upload.")
        return self.build_url(object_name)

    # --- 删除 (Delete) ---

    async def delete_file(self, object_name: str) -> None:
        """删除单个对象，失败时抛出 StorageFailureException。"""
        try:
            await run_in_threadpool(self.client.remove_object, object_name)
            self.logger.info(f"Deleted {object_name}")
        except Exception as e:
            self.logger.warning(f"Failed to delete {object_name}: {e}")
            raise StorageFailureException(message=f"File deletion failed: {object_name}")

    async def delete_files(self, object_names: List[str]) -> List[str]:
        """
        并发删除多个对象，单个对象的失败不会影响其他对象。
        返回删除失败的对象键列表。
        """
        results = await asyncio.gather(
            *(self.delete_file(name) for name in object_names),
            return_exceptions=True,
        )
        failed = [name for name, result in zip(object_names, results) if isinstance(result, Exception)]
        if failed:
            self.logger.warning(f"{len(failed)} of {len(object_names)} objects could not be deleted: {failed}")
        return failed

    async def _delete_batch(self, batch_index: int, object_names: List[str]) -> int:
        try:
            result = await run_in_threadpool(self.client.remove_objects, object_names)
        except Exception as e:
            self.logger.warning(f"Delete batch {batch_index} ({len(object_names)} keys) failed: {e}")
            raise StorageFailureException(message=f"Delete batch {batch_index} failed.")
        return len(result.get("deleted", []))

    async def delete_files_in_batches(self, object_names: List[str]) -> int:
        """
        按 delete_batch_size 分批调用批量删除接口，各批次并发执行。
        失败的批次只记录日志，不影响其他批次。
        返回被对象存储确认删除的对象数量。
        """
        if not object_names:
            return 0

        batch_size = self.settings.media.delete_batch_size
        batches = [object_names[i:i + batch_size] for i in range(0, len(object_names), batch_size)]
        results = await asyncio.gather(
            *(self._delete_batch(index, batch) for index, batch in enumerate(batches)),
            return_exceptions=True,
        )
        deleted = sum(result for result in results if not isinstance(result, BaseException))
        failed_batches = sum(1 for result in results if isinstance(result, BaseException))
        if failed_batches:
            self.logger.warning(f"{failed_batches} of {len(batches)} delete batches failed.")
        return deleted
