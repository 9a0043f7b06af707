from enum import Enum


class ResponseCodeEnum(Enum):

    # === 通用响应码 ===
    SUCCESS = (0, "请求成功")
    CREATED = (201, "资源创建成功")
    VALIDATION_ERROR = (40001, "参数验证失败")
    INVALID_REQUEST = (40002, "请求参数无效")
    UNAUTHORIZED = (40100, "未授权")
    NOT_FOUND = (40400, "资源不存在")
    SERVER_ERROR = (50000, "服务器内部错误")

    # === 文件上传 ===
    NO_FILE = (40020, "未提供上传文件")
    FILE_TOO_LARGE = (40021, "文件大小超出限制")
    UNSUPPORTED_MEDIA_TYPE = (40022, "不支持的文件类型")

    # === 文件管理 ===
    INVALID_FILE_ID = (40030, "无效的文件ID")
    INVALID_FILE_IDS = (40031, "存在无效的文件ID")
    TOO_MANY_FILES = (40032, "单次批量删除的文件数量超出限制")
    FILE_NOT_FOUND = (40401, "文件不存在")

    # === 基础设施 ===
    PERSISTENCE_FAILURE = (50001, "文件元数据保存失败")
    STORAGE_FAILURE = (50201, "对象存储操作失败")

    def __init__(self, code: int, message: str):
        self._code = code
        self._message = message

    @property
    def code(self):
        return self._code

    @property
    def message(self):
        return self._message
