from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import mediahub.models  # noqa: F401
from mediahub.config.settings import settings


DATABASE_URL = settings.database.url


def build_engine(url: str, echo: bool = False):
    """内存 SQLite 需要共享同一个连接，否则每个连接都是一个空库"""
    if url.startswith("sqlite") and ":memory:" in url:
        return create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


# 初始化数据库引擎和 Session
engine = build_engine(DATABASE_URL, echo=settings.database.echo)
AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    提供一个数据库会话，并采用明确的事务控制。
    """
    session = AsyncSessionLocal()
    try:
        yield session
        # 如果路由函数成功执行（没有抛出异常），则在最后提交所有更改。
        await session.commit()
    except Exception:
        # 如果在处理过程中发生任何异常，则回滚所有更改，再交给上层处理。
        await session.rollback()
        raise
    finally:
        await session.close()


# 初始化数据库（启动时调用）
async def create_db_and_tables(bind=None):
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
