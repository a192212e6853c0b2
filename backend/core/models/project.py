# backend/core/models/project.py
# 功能: 项目模型，备忘录和文章的归属容器
# 主要类: Project
# 数据结构: projects 表，owner_id 指向外部用户，(owner_id, name) 唯一

"""
项目模型
每个项目属于唯一一个用户；删除项目时级联删除其下的备忘录和文章
"""

from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Text, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.models.base import BaseModel

if TYPE_CHECKING:
    from core.models.memo import Memo
    from core.models.essay import Essay


class Project(BaseModel):
    """
    项目

    Attributes:
        owner_id: 所属用户 ID（用户由外部认证系统管理，这里只保存 ID）
        name: 项目名称（同一用户下唯一）
        description: 项目描述（可为空）
    """
    __tablename__ = "projects"
    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_projects_owner_name"),
    )

    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 级联交给数据库外键（ON DELETE CASCADE），异步模式下不做 ORM 级加载
    memos: Mapped[list["Memo"]] = relationship(
        "Memo", back_populates="project", passive_deletes=True
    )
    essays: Mapped[list["Essay"]] = relationship(
        "Essay", back_populates="project", passive_deletes=True
    )

    def is_owned_by(self, user_id: int) -> bool:
        return self.owner_id == user_id
