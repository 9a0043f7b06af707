from typing import List, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


# ==========================
# 💡 通用分页类型定义
# ==========================
class PageResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    total_pages: int
    per_page: int

    model_config = {
        "from_attributes": True,
        "arbitrary_types_allowed": True,
    }
