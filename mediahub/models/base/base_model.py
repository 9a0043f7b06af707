import uuid

from sqlmodel import SQLModel, Field


class BaseModel(SQLModel):
    """
    所有数据表模型的公共基类，只提供 UUID 主键。
    文件记录创建后不可变，因此不混入更新时间和软删除字段。
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
