# backend/core/database.py
# 功能: 数据库连接管理
# 主要函数: get_engine(), get_session_maker(), init_db(), get_db()
# 数据结构: Base (SQLAlchemy declarative base)

"""
数据库连接管理模块
使用 SQLAlchemy 2.0 异步模式（默认 aiosqlite）
"""

from functools import lru_cache
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy import event, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from core.config import settings


class Base(DeclarativeBase):
    """SQLAlchemy 声明式基类"""
    pass


def create_engine_for(url: str, echo: bool = False) -> AsyncEngine:
    """
    按 URL 创建异步引擎

    SQLite 使用 StaticPool（本地单库 / 内存库测试），
    并在每个连接上打开外键约束，项目删除时级联删除备忘录和文章。
    """
    kwargs = {"echo": echo}
    if url.startswith("sqlite"):
        _ensure_sqlite_dir(url)
        kwargs["connect_args"] = {"check_same_thread": False}
        kwargs["poolclass"] = StaticPool

    engine = create_async_engine(url, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_sqlite_fk(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def _ensure_sqlite_dir(url: str) -> None:
    """SQLite 文件库：确保所在目录存在"""
    database = make_url(url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


@lru_cache()
def get_engine() -> AsyncEngine:
    """获取全局数据库引擎（单例）"""
    return create_engine_for(settings.database_url, echo=settings.debug)


def get_session_maker(engine: AsyncEngine = None) -> async_sessionmaker[AsyncSession]:
    """获取 Session 工厂"""
    return async_sessionmaker(
        bind=engine or get_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine = None) -> None:
    """初始化数据库（创建所有表）"""
    engine = engine or get_engine()
    # 导入所有模型以确保它们被注册
    from core import models  # noqa
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# 依赖注入用的Session生成器
async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI依赖: 获取数据库Session"""
    SessionLocal = get_session_maker()
    async with SessionLocal() as db:
        yield db
