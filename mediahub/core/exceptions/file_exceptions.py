from typing import List, Optional

from mediahub.core.exceptions.base_exception import BaseBusinessException, NotFoundException
from mediahub.core.response_codes import ResponseCodeEnum


# === 上传相关异常 ===
class NoFileException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.NO_FILE, status_code=400, message=message)


class FileTooLargeException(BaseBusinessException):
    def __init__(self, max_size_mb: int, size: Optional[int] = None):
        super().__init__(
            ResponseCodeEnum.FILE_TOO_LARGE,
            status_code=400,
            message=f"File is too large. Max size is {max_size_mb}MB.",
            extra={"max_size_mb": max_size_mb, "size": size},
        )


class UnsupportedMediaTypeException(BaseBusinessException):
    def __init__(self, mime_type: Optional[str] = None, category: Optional[str] = None):
        super().__init__(
            ResponseCodeEnum.UNSUPPORTED_MEDIA_TYPE,
            status_code=400,
            message="Only image, video and audio files are supported.",
            extra={"mime_type": mime_type, "category": category},
        )


# === 基础设施异常 ===
class StorageFailureException(BaseBusinessException):
    """对象存储写入/删除失败，且重试后仍未成功"""
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.STORAGE_FAILURE, status_code=502, message=message)


class PersistenceFailureException(BaseBusinessException):
    """文件元数据写入或删除失败"""
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.PERSISTENCE_FAILURE, status_code=500, message=message)


# === 文件管理异常 ===
class FileNotFoundException(NotFoundException):
    def __init__(self, message: str = None):
        super().__init__(message=message or ResponseCodeEnum.FILE_NOT_FOUND.message)
        self.code_enum = ResponseCodeEnum.FILE_NOT_FOUND
        self.code = ResponseCodeEnum.FILE_NOT_FOUND.code


class InvalidFileIdException(BaseBusinessException):
    def __init__(self, file_id: str = None):
        super().__init__(
            ResponseCodeEnum.INVALID_FILE_ID,
            status_code=400,
            extra={"file_id": file_id},
        )


class InvalidFileIdsException(BaseBusinessException):
    def __init__(self, invalid_ids: List[str]):
        super().__init__(
            ResponseCodeEnum.INVALID_FILE_IDS,
            status_code=400,
            extra={"invalid_ids": invalid_ids},
        )


class TooManyFilesException(BaseBusinessException):
    def __init__(self, max_files: int, received: int):
        super().__init__(
            ResponseCodeEnum.TOO_MANY_FILES,
            status_code=400,
            message=f"Cannot delete more than {max_files} files at once.",
            extra={"max_files": max_files, "received": received},
        )
