# mediahub/core/exceptions/__init__.py

from .base_exception import (
    BaseBusinessException,
    NotFoundException,
    InvalidRequestException,
)
from .auth_exceptions import UnauthorizedException
from .file_exceptions import (
    NoFileException,
    FileTooLargeException,
    UnsupportedMediaTypeException,
    StorageFailureException,
    PersistenceFailureException,
    FileNotFoundException,
    InvalidFileIdException,
    InvalidFileIdsException,
    TooManyFilesException,
)

__all__ = [
    "BaseBusinessException",
    "NotFoundException",
    "InvalidRequestException",

    "UnauthorizedException",

    "NoFileException",
    "FileTooLargeException",
    "UnsupportedMediaTypeException",
    "StorageFailureException",
    "PersistenceFailureException",
    "FileNotFoundException",
    "InvalidFileIdException",
    "InvalidFileIdsException",
    "TooManyFilesException",
]
