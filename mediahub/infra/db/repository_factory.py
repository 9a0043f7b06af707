# mediahub/infra/db/repository_factory.py
from typing import Dict, Type, TypeVar

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mediahub.infra.db.session import get_session
from mediahub.repo.crud.common.base_repo import BaseRepository

RepoType = TypeVar("RepoType", bound=BaseRepository)


class RepositoryFactory:
    """
    RepositoryFactory 负责在一个数据库会话内实例化并缓存 Repository。
    同一个请求里的所有 Repository 共享同一个 Session，也就共享同一个事务。
    """

    def __init__(self, db: AsyncSession):
        self._db = db
        self._registry: Dict[Type[BaseRepository], BaseRepository] = {}

    def get_repo_by_type(self, repo_type: Type[RepoType]) -> RepoType:
        """
        根据 Repository 类型获取实例，同一会话内只实例化一次。
        """
        if repo_type not in self._registry:
            self._registry[repo_type] = repo_type(self._db)
        return self._registry[repo_type]

    def get_session(self) -> AsyncSession:
        return self._db


def get_repository_factory(session: AsyncSession = Depends(get_session)) -> RepositoryFactory:
    """
    专为 FastAPI API 请求设计的依赖注入函数。
    """
    return RepositoryFactory(db=session)
