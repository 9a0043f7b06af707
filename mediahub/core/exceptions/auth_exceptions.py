from mediahub.core.exceptions.base_exception import BaseBusinessException
from mediahub.core.response_codes import ResponseCodeEnum


class UnauthorizedException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.UNAUTHORIZED, status_code=401, message=message)
