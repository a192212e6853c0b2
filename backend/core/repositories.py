# backend/core/repositories.py
# 功能: 关系库读写（Record Store），项目、备忘录、文章的增删改查
# 主要类: ProjectRepository, MemoRepository, EssayRepository
# 设计:
#   - 不做任何权限判断（由 core/ownership.py 负责）
#   - 每个写操作单独提交
#   - 列表排序: 置顶优先 → updated_at 降序 → id 降序
#   - SQLAlchemyError 统一转换为 InfrastructureFailure(record_store)

"""
Record Store

所有方法都是异步的，返回 ORM 对象（expire_on_commit=False，提交后可直接读取字段）。
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional, List

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InfrastructureFailure, NameConflict, NotFound, RECORD_STORE
from core.models import Project, Memo, Essay, utc_now

logger = logging.getLogger("repositories")

# 用于区分"未传入"和"显式传 None"（如清空项目描述）
UNSET = object()


class _Repository:
    """仓储基类：持有 Session，统一错误转换"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _store_errors(self, action: str, conflict_name: Optional[str] = None):
        """
        SQLAlchemyError 回滚后转换为 InfrastructureFailure(record_store)

        传入 conflict_name 时，唯一约束冲突（并发请求都通过了名称预检）转换为 NameConflict
        """
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            if conflict_name is not None and isinstance(e, IntegrityError):
                logger.info("[record_store] %s 名称冲突: %s", action, conflict_name)
                raise NameConflict(conflict_name) from e
            logger.error("[record_store] %s 失败: %s", action, e)
            raise InfrastructureFailure(RECORD_STORE, str(e)) from e


class ProjectRepository(_Repository):

    async def find_by_id(self, project_id: int) -> Optional[Project]:
        async with self._store_errors("find project"):
            return await self.db.scalar(
                select(Project).where(Project.id == project_id)
            )

    async def find_by_owner_id(self, owner_id: int) -> List[Project]:
        """用户的全部项目，按创建时间倒序"""
        async with self._store_errors("list projects"):
            result = await self.db.scalars(
                select(Project)
                .where(Project.owner_id == owner_id)
                .order_by(Project.created_at.desc(), Project.id.desc())
            )
            return list(result.all())

    async def find_by_owner_and_name(self, owner_id: int, name: str) -> Optional[Project]:
        async with self._store_errors("find project by name"):
            return await self.db.scalar(
                select(Project).where(
                    Project.owner_id == owner_id,
                    Project.name == name,
                )
            )

    async def create(self, owner_id: int, name: str, description: Optional[str] = None) -> Project:
        now = utc_now()
        project = Project(
            owner_id=owner_id,
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
        )
        async with self._store_errors("create project", conflict_name=name):
            self.db.add(project)
            await self.db.commit()
        return project

    async def update(self, project_id: int, name=UNSET, description=UNSET) -> Project:
        """部分更新；name / description 未传入时保持不变"""
        project = await self.find_by_id(project_id)
        if project is None:
            raise NotFound("project")

        if name is not UNSET:
            project.name = name
        if description is not UNSET:
            project.description = description
        project.touch()
        new_name = project.name

        async with self._store_errors("update project", conflict_name=new_name):
            await self.db.commit()
        return project

    async def delete(self, project_id: int) -> bool:
        """删除项目；其下备忘录和文章由外键级联删除"""
        async with self._store_errors("delete project"):
            result = await self.db.execute(
                delete(Project).where(Project.id == project_id)
            )
            await self.db.commit()
        return result.rowcount > 0


class MemoRepository(_Repository):

    async def find_by_id(self, memo_id: int) -> Optional[Memo]:
        async with self._store_errors("find memo"):
            return await self.db.scalar(select(Memo).where(Memo.id == memo_id))

    async def find_by_project_id(self, project_id: int) -> List[Memo]:
        async with self._store_errors("list memos"):
            result = await self.db.scalars(
                select(Memo)
                .where(Memo.project_id == project_id)
                .order_by(Memo.is_pinned.desc(), Memo.updated_at.desc(), Memo.id.desc())
            )
            return list(result.all())

    async def find_ids_by_project_id(self, project_id: int) -> List[int]:
        async with self._store_errors("list memo ids"):
            result = await self.db.scalars(
                select(Memo.id).where(Memo.project_id == project_id)
            )
            return list(result.all())

    async def create(self, project_id: int, content: str) -> Memo:
        now = utc_now()
        memo = Memo(
            project_id=project_id,
            content=content,
            is_pinned=False,
            created_at=now,
            updated_at=now,
        )
        async with self._store_errors("create memo"):
            self.db.add(memo)
            await self.db.commit()
        return memo

    async def update(self, memo_id: int, content: str) -> Memo:
        memo = await self.find_by_id(memo_id)
        if memo is None:
            raise NotFound("memo")

        memo.content = content
        memo.touch()
        async with self._store_errors("update memo"):
            await self.db.commit()
        return memo

    async def toggle_pin(self, memo_id: int) -> Memo:
        memo = await self.find_by_id(memo_id)
        if memo is None:
            raise NotFound("memo")

        memo.is_pinned = not memo.is_pinned
        memo.touch()
        async with self._store_errors("toggle memo pin"):
            await self.db.commit()
        return memo

    async def delete(self, memo_id: int) -> bool:
        async with self._store_errors("delete memo"):
            result = await self.db.execute(delete(Memo).where(Memo.id == memo_id))
            await self.db.commit()
        return result.rowcount > 0


class EssayRepository(_Repository):

    async def find_by_id(self, essay_id: int) -> Optional[Essay]:
        async with self._store_errors("find essay"):
            return await self.db.scalar(select(Essay).where(Essay.id == essay_id))

    async def find_by_project_id(self, project_id: int) -> List[Essay]:
        async with self._store_errors("list essays"):
            result = await self.db.scalars(
                select(Essay)
                .where(Essay.project_id == project_id)
                .order_by(Essay.is_pinned.desc(), Essay.updated_at.desc(), Essay.id.desc())
            )
            return list(result.all())

    async def create(self, project_id: int, title: str, content: str) -> Essay:
        now = utc_now()
        essay = Essay(
            project_id=project_id,
            title=title,
            content=content,
            is_pinned=False,
            created_at=now,
            updated_at=now,
        )
        async with self._store_errors("create essay"):
            self.db.add(essay)
            await self.db.commit()
        return essay

    async def update(self, essay_id: int, title: str, content: str) -> Essay:
        essay = await self.find_by_id(essay_id)
        if essay is None:
            raise NotFound("essay")

        essay.title = title
        essay.content = content
        essay.touch()
        async with self._store_errors("update essay"):
            await self.db.commit()
        return essay

    async def toggle_pin(self, essay_id: int) -> Essay:
        essay = await self.find_by_id(essay_id)
        if essay is None:
            raise NotFound("essay")

        essay.is_pinned = not essay.is_pinned
        essay.touch()
        async with self._store_errors("toggle essay pin"):
            await self.db.commit()
        return essay

    async def delete(self, essay_id: int) -> bool:
        async with self._store_errors("delete essay"):
            result = await self.db.execute(delete(Essay).where(Essay.id == essay_id))
            await self.db.commit()
        return result.rowcount > 0
