# backend/core/models/__init__.py
# 功能: 模型包入口，导出所有SQLAlchemy模型
# 包含: 所有数据模型类

"""
数据模型包
导出所有SQLAlchemy模型供其他模块使用
"""

from core.models.base import BaseModel, utc_now, next_timestamp
from core.models.project import Project
from core.models.memo import Memo
from core.models.essay import Essay

__all__ = [
    # 基础
    "BaseModel",
    "utc_now",
    "next_timestamp",

    # 项目
    "Project",

    # 项目内容
    "Memo",
    "Essay",
]
