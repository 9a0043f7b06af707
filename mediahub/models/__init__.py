# 导入所有表模型，确保 SQLModel.metadata 在 create_all 之前完成注册
from mediahub.models.files.file_record import FileRecord

__all__ = ["FileRecord"]
