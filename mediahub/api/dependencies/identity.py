from fastapi import Request

from mediahub.config.settings import settings
from mediahub.core.exceptions import UnauthorizedException


def get_current_owner(request: Request) -> str:
    """
    读取上游身份网关写入的用户 ID。
    令牌的签发与校验不在本服务内完成，这里只负责拿到已认证的用户标识。
    """
    owner_id = request.headers.get(settings.security.owner_header, "").strip()
    if not owner_id:
        raise UnauthorizedException()
    return owner_id
