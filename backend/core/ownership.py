# backend/core/ownership.py
# 功能: 归属链校验，user → project → memo/essay
# 主要类: OwnershipResolver, ProjectRef, MemoRef, EssayRef
# 主要函数: authorize(user_id, ref): 返回解析出的记录，失败抛 NotFound / Unauthorized
# 关联: 所有 *_service.py 在读写前调用

"""
归属链校验

规则:
1. 目标资源不存在 → NotFound(资源类型)
2. memo / essay 多查一次所属项目；项目已不存在（级联删除后的孤儿引用）→ NotFound("project")
3. 项目 owner_id 与当前用户不一致 → Unauthorized（不向非所有者透露更多信息）

每次调用都重新查库，不跨请求缓存授权结果。
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFound, Unauthorized
from core.models import Project, Memo, Essay
from core.repositories import ProjectRepository, MemoRepository, EssayRepository

logger = logging.getLogger("ownership")


@dataclass(frozen=True)
class ProjectRef:
    id: int


@dataclass(frozen=True)
class MemoRef:
    id: int


@dataclass(frozen=True)
class EssayRef:
    id: int


ResourceRef = Union[ProjectRef, MemoRef, EssayRef]


@dataclass
class Resolved:
    """校验通过后的记录：project 总是存在，memo / essay 视目标而定"""
    project: Project
    memo: Optional[Memo] = None
    essay: Optional[Essay] = None


class OwnershipResolver:

    def __init__(self, db: AsyncSession):
        self.projects = ProjectRepository(db)
        self.memos = MemoRepository(db)
        self.essays = EssayRepository(db)

    async def authorize(self, user_id: int, ref: ResourceRef) -> Resolved:
        if isinstance(ref, ProjectRef):
            project = await self._load_project(ref.id)
            self._check_owner(user_id, project)
            return Resolved(project=project)

        if isinstance(ref, MemoRef):
            memo = await self.memos.find_by_id(ref.id)
            if memo is None:
                raise NotFound("memo")
            project = await self._load_project(memo.project_id)
            self._check_owner(user_id, project)
            return Resolved(project=project, memo=memo)

        if isinstance(ref, EssayRef):
            essay = await self.essays.find_by_id(ref.id)
            if essay is None:
                raise NotFound("essay")
            project = await self._load_project(essay.project_id)
            self._check_owner(user_id, project)
            return Resolved(project=project, essay=essay)

        raise TypeError(f"unsupported resource reference: {ref!r}")

    async def authorize_project(self, user_id: int, project_id: int) -> Project:
        return (await self.authorize(user_id, ProjectRef(project_id))).project

    async def authorize_memo(self, user_id: int, memo_id: int) -> Memo:
        return (await self.authorize(user_id, MemoRef(memo_id))).memo

    async def authorize_essay(self, user_id: int, essay_id: int) -> Essay:
        return (await self.authorize(user_id, EssayRef(essay_id))).essay

    async def _load_project(self, project_id: int) -> Project:
        project = await self.projects.find_by_id(project_id)
        if project is None:
            raise NotFound("project")
        return project

    @staticmethod
    def _check_owner(user_id: int, project: Project) -> None:
        if not project.is_owned_by(user_id):
            logger.info("[ownership] user=%s 拒绝访问 project=%s", user_id, project.id)
            raise Unauthorized()
