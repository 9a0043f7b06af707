from enum import Enum


class MediaCategory(str, Enum):
    """
    文件的粗粒度媒体类别。
    继承 (str, Enum) 允许 Pydantic 和查询参数直接使用字符串值。
    """
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    OTHER = "other"

    @property
    def is_ingestible(self) -> bool:
        return self in (MediaCategory.IMAGE, MediaCategory.VIDEO, MediaCategory.AUDIO)


class DerivativeRole(str, Enum):
    """派生对象在对象键中的角色前缀"""
    PREVIEW = "preview"
    POSTER = "poster"


class SortField(str, Enum):
    UPLOADED_AT = "uploadedAt"
    SIZE = "size"
    ORIGINAL_NAME = "originalName"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
