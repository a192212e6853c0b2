# backend/core/models/base.py
# 功能: 基础模型类，提供通用字段和方法
# 主要类: BaseModel (包含id, created_at, updated_at)
# 主要函数: utc_now(), next_timestamp()
# 数据结构: 所有模型的基类

"""
基础模型类
所有数据模型都继承自此类，自动获得id、时间戳等通用字段

时间戳由应用层写入（而不是数据库 func.now()）：
SQLite 的 CURRENT_TIMESTAMP 只有秒级精度，无法保证 updated_at 严格递增。
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


def utc_now() -> datetime:
    """当前 UTC 时间（naive，与库中存储格式一致）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """
    生成一个严格晚于 previous 的时间戳

    同一微秒内的连续写入也要让 updated_at 前进。
    """
    now = utc_now()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class BaseModel(Base):
    """
    抽象基础模型
    提供: id (自增整数), created_at, updated_at
    """
    __abstract__ = True

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
    )

    def touch(self) -> None:
        """刷新 updated_at（created_at 创建后不再变化）"""
        self.updated_at = next_timestamp(self.updated_at)

    def to_dict(self) -> dict:
        """转换为字典（用于API响应）"""
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }
