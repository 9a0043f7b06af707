import operator
from math import ceil
from typing import TypeVar, Generic, Optional, Type, List, Union, Dict, Any

from pydantic import BaseModel
from sqlalchemy import asc, desc, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from mediahub.core.logger import logger
from mediahub.schemas.common.page_schemas import PageResponse


ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)

OPERATOR_MAP = {
    'eq': operator.eq,          # 等于: field__eq=value
    'le': operator.le,          # 小于等于
    'ge': operator.ge,          # 大于等于
    'ilike': 'icontains',       # 子串匹配 (不区分大小写): field__ilike=value
}


class BaseRepository(Generic[ModelType, CreateSchemaType]):
    # 未指定排序时使用的默认排序字段，'-' 前缀表示降序
    default_ordering: List[str] = []

    def __init__(self, db: AsyncSession, model: Type[ModelType]):
        self.db = db
        self.model = model

    # ==========================
    # 事务控制方法 (Transaction Control)
    # ==========================

    async def commit(self):
        """提交当前数据库会话中的所有更改。"""
        await self.db.commit()

    async def rollback(self):
        """回滚当前数据库会话中的所有更改。"""
        await self.db.rollback()

    # ==========================
    # 数据创建方法 (Create)
    # ==========================

    async def create(self, obj_in: Union[CreateSchemaType, Dict[str, Any]]) -> ModelType:
        """
        创建一个新的对象实例，并将其添加到会话中。
        """
        create_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(mode="json", exclude_unset=True)
        db_obj = self.model(**create_data)
        self.db.add(db_obj)
        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    # ==========================
    # 数据删除方法 (Delete)
    # ==========================

    async def delete_where(self, *conditions) -> int:
        """
        按条件批量物理删除，返回受影响的行数。
        """
        stmt = delete(self.model).where(*conditions)
        result = await self.db.execute(stmt)
        return result.rowcount or 0

    # ==========================
    # 数据查询方法 (Query)
    # ==========================

    def _base_stmt(self):
        return select(self.model)

    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        stmt = self._base_stmt().where(self.model.id == id)
        return await self._run_and_scalar(stmt, "get_by_id")

    def apply_ordering(self, stmt, order_by: List[str]):
        order_by = order_by or self.default_ordering
        for sort_field in order_by:
            order_func = asc
            if sort_field.startswith('-'):
                sort_field = sort_field[1:]
                order_func = desc

            column = getattr(self.model, sort_field, None)
            if column is not None:
                stmt = stmt.order_by(order_func(column))
            else:
                logger.warning(f"Ignored invalid sort field: {sort_field}")
        return stmt

    async def count(self) -> int:
        stmt = select(func.count()).select_from(self.model)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def _run_and_scalar(self, stmt, method: str):
        try:
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"[{method}] Failed: {e}")
            raise

    async def _run_and_scalars(self, stmt, method: str):
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"[{method}] Failed: {e}")
            raise

    async def get_paged_list(
            self,
            *,
            page: int = 1,
            per_page: int = 10,
            filters: Optional[Dict[str, Any]] = None,
            sort_by: Optional[List[str]] = None,
            stmt_in: Optional[Any] = None
    ) -> PageResponse[ModelType]:
        """
        通用的、支持动态过滤和排序的分页查询方法。
        这是所有 Repo 的分页查询入口。
        """
        stmt = stmt_in if stmt_in is not None else self._base_stmt()

        # 1. 应用动态过滤
        stmt = self._apply_dynamic_filters(stmt, dict(filters or {}))

        # 2. 计算总数 (在分页前)
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total_result = await self.db.execute(count_stmt)
        total = total_result.scalar_one_or_none() or 0

        if total == 0:
            return PageResponse(items=[], total=0, page=page, per_page=per_page, total_pages=0)

        # 3. 应用排序和分页
        stmt = self.apply_ordering(stmt, sort_by or [])
        stmt = stmt.offset((page - 1) * per_page).limit(per_page)

        # 4. 执行查询并返回结果
        items = await self._run_and_scalars(stmt, "get_paged_list")

        return PageResponse(
            items=items,
            total=total,
            page=page,
            per_page=per_page,
            total_pages=ceil(total / per_page) if per_page > 0 else 0,
        )

    def _build_condition(self, key: str, value: Any):
        """
        根据 key 和 value 构建单个查询条件。
        """
        parts = key.split('__')
        field_name = parts[0]
        op_name = parts[1] if len(parts) > 1 else 'eq'

        column = getattr(self.model, field_name, None)
        if column is None:
            logger.warning(f"Ignored invalid filter field: {field_name}")
            return None

        op_func = OPERATOR_MAP.get(op_name)
        if op_func is None:
            logger.warning(f"Ignored invalid filter operator: {op_name}")
            return None

        if isinstance(op_func, str):
            # icontains 会自动转义用户输入中的 % 和 _
            return getattr(column, op_func)(value, autoescape=True)
        return op_func(column, value)

    def _apply_dynamic_filters(self, stmt, filters: Dict[str, Any]):
        """
        理解 `field__operator` 语法的动态过滤器，所有条件以 AND 组合，值为空的条件被忽略。
        """
        if not filters:
            return stmt

        for key, value in filters.items():
            if value is None or value == '':
                continue
            condition = self._build_condition(key, value)
            if condition is not None:
                stmt = stmt.where(condition)

        return stmt
