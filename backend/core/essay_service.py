# backend/core/essay_service.py
# 功能: 文章服务，增删改查、置顶
# 主要类: EssayService
# 设计: 与备忘录相同的"先校验归属再操作"，不涉及向量索引

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.models import Essay
from core.ownership import OwnershipResolver
from core.repositories import EssayRepository, ProjectRepository

logger = logging.getLogger("essay_service")


class EssayService:

    def __init__(self, db: AsyncSession):
        self.essays = EssayRepository(db)
        self.projects = ProjectRepository(db)
        self.ownership = OwnershipResolver(db)

    async def create_essay(self, user_id: int, project_id: int, title: str, content: str) -> Essay:
        await self.ownership.authorize_project(user_id, project_id)
        essay = await self.essays.create(project_id, title, content)
        logger.info("Created essay %s in project %s", essay.id, project_id)
        return essay

    async def get_essay(self, user_id: int, essay_id: int) -> Essay:
        return await self.ownership.authorize_essay(user_id, essay_id)

    async def list_essays(self, user_id: int, project_id: Optional[int] = None) -> List[Essay]:
        if project_id is not None:
            await self.ownership.authorize_project(user_id, project_id)
            return await self.essays.find_by_project_id(project_id)

        essays: List[Essay] = []
        for project in await self.projects.find_by_owner_id(user_id):
            await self.ownership.authorize_project(user_id, project.id)
            essays.extend(await self.essays.find_by_project_id(project.id))
        return essays

    async def update_essay(self, user_id: int, essay_id: int, title: str, content: str) -> Essay:
        await self.ownership.authorize_essay(user_id, essay_id)
        essay = await self.essays.update(essay_id, title, content)
        logger.info("Updated essay %s", essay_id)
        return essay

    async def delete_essay(self, user_id: int, essay_id: int) -> None:
        await self.ownership.authorize_essay(user_id, essay_id)
        await self.essays.delete(essay_id)
        logger.info("Deleted essay %s", essay_id)

    async def toggle_pin(self, user_id: int, essay_id: int) -> Essay:
        await self.ownership.authorize_essay(user_id, essay_id)
        essay = await self.essays.toggle_pin(essay_id)
        logger.info("Essay %s pinned=%s", essay_id, essay.is_pinned)
        return essay
