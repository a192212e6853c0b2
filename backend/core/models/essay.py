# backend/core/models/essay.py
# 功能: 文章模型，带标题的长文，不参与向量检索
# 主要类: Essay
# 数据结构: essays 表，project_id 关联项目（ON DELETE CASCADE）

from typing import TYPE_CHECKING

from sqlalchemy import String, Text, Integer, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.models.base import BaseModel

if TYPE_CHECKING:
    from core.models.project import Project


class Essay(BaseModel):
    """文章"""
    __tablename__ = "essays"

    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_pinned: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True,
    )

    project: Mapped["Project"] = relationship("Project", back_populates="essays")
