# backend/core/models/memo.py
# 功能: 备忘录模型，短笔记，每条都有一个对应的向量索引条目
# 主要类: Memo
# 数据结构: memos 表，project_id 关联项目（ON DELETE CASCADE）
# 关联: core/memo_service.py (写入时同步向量), core/assist_service.py (检索回填)

"""
备忘录

向量索引条目以 memo.id 为键，随备忘录创建、更新、删除同步维护，
本身不入关系库。
"""

from typing import TYPE_CHECKING

from sqlalchemy import Text, Integer, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.models.base import BaseModel

if TYPE_CHECKING:
    from core.models.project import Project


class Memo(BaseModel):
    """备忘录"""
    __tablename__ = "memos"

    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_pinned: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True,
    )

    project: Mapped["Project"] = relationship("Project", back_populates="memos")
