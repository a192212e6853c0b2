# backend/core/project_service.py
# 功能: 项目服务，创建、列表、查看、修改、删除
# 主要类: ProjectService
# 设计:
#   - 创建 / 改名前先按 (owner_id, name) 查重，冲突抛 NameConflict
#   - 删除项目时，关系库级联删除备忘录；其向量条目在删除前收集，删除后尽力清理

"""
项目服务
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InfrastructureFailure, NameConflict
from core.models import Project
from core.ownership import OwnershipResolver
from core.repositories import ProjectRepository, MemoRepository, UNSET
from core.vector_index import VectorIndex

logger = logging.getLogger("project_service")


class ProjectService:

    def __init__(self, db: AsyncSession, vector_index: VectorIndex):
        self.projects = ProjectRepository(db)
        self.memos = MemoRepository(db)
        self.ownership = OwnershipResolver(db)
        self.vector_index = vector_index

    async def create_project(
        self,
        user_id: int,
        name: str,
        description: Optional[str] = None,
    ) -> Project:
        await self._ensure_name_available(user_id, name)
        project = await self.projects.create(user_id, name, description)
        logger.info("Created project %s for user %s: %s", project.id, user_id, name)
        return project

    async def list_projects(self, user_id: int) -> List[Project]:
        return await self.projects.find_by_owner_id(user_id)

    async def get_project(self, user_id: int, project_id: int) -> Project:
        return await self.ownership.authorize_project(user_id, project_id)

    async def update_project(
        self,
        user_id: int,
        project_id: int,
        name=UNSET,
        description=UNSET,
    ) -> Project:
        """部分更新。改成项目自己当前的名字不算冲突"""
        project = await self.ownership.authorize_project(user_id, project_id)
        if name is not UNSET and name != project.name:
            await self._ensure_name_available(user_id, name, exclude_id=project.id)

        project = await self.projects.update(project_id, name=name, description=description)
        logger.info("Updated project %s", project_id)
        return project

    async def delete_project(self, user_id: int, project_id: int) -> None:
        await self.ownership.authorize_project(user_id, project_id)

        memo_ids = await self.memos.find_ids_by_project_id(project_id)
        await self.projects.delete(project_id)
        logger.info("Deleted project %s (%d memos cascaded)", project_id, len(memo_ids))

        for memo_id in memo_ids:
            try:
                await self.vector_index.delete(memo_id)
            except InfrastructureFailure as e:
                logger.warning("[orphan] 向量条目清理失败 memo=%s: %s", memo_id, e)

    async def _ensure_name_available(
        self,
        user_id: int,
        name: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        existing = await self.projects.find_by_owner_and_name(user_id, name)
        if existing is not None and existing.id != exclude_id:
            raise NameConflict(name)
