import asyncio
import os

os.environ["ENV"] = "test"

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from helpers import FakeStorageClient
from mediahub.infra.db.repository_factory import RepositoryFactory
from mediahub.infra.db.session import build_engine, create_db_and_tables
from mediahub.services.file.file_service import FileService


@pytest.fixture
def fake_storage():
    return FakeStorageClient()


@pytest.fixture
def file_service(fake_storage):
    return FileService(client=fake_storage)


@pytest.fixture
def run_db():
    """
    在一个全新的内存数据库里执行 scenario(repo_factory)。
    每次调用都在自己的事件循环里创建并释放引擎。
    """
    def runner(scenario):
        async def main():
            engine = build_engine("sqlite+aiosqlite:///:memory:")
            await create_db_and_tables(bind=engine)
            session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
            try:
                async with session_factory() as session:
                    return await scenario(RepositoryFactory(db=session))
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return runner
