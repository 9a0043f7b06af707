# mediahub/core/exceptions/base_exception.py

from typing import Optional

from mediahub.core.response_codes import ResponseCodeEnum


class BaseBusinessException(Exception):
    def __init__(
            self,
            code_enum: Optional[ResponseCodeEnum] = None,
            code: Optional[int] = None,
            status_code: int = 400,
            message: Optional[str] = None,
            extra: Optional[dict] = None,
    ):
        code_enum = code_enum or ResponseCodeEnum.SERVER_ERROR
        self.code_enum = code_enum
        self.code = code if code is not None else code_enum.code
        self.message = message or code_enum.message
        self.status_code = status_code
        self.extra = extra or {}
        super().__init__(self.message)

    @property
    def error(self) -> str:
        """错误种类，对外暴露为响应码枚举的名称，例如 FILE_TOO_LARGE"""
        return self.code_enum.name

    def __str__(self):
        return f"[{self.code}] {self.message}"


class NotFoundException(BaseBusinessException):
    """
    当请求的资源在数据库中不存在时抛出。
    """
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.NOT_FOUND, status_code=404, message=message)


class InvalidRequestException(BaseBusinessException):
    def __init__(self, message: str = None, extra: Optional[dict] = None):
        super().__init__(ResponseCodeEnum.INVALID_REQUEST, status_code=400, message=message, extra=extra)
