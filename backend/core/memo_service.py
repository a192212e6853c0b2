# backend/core/memo_service.py
# 功能: 备忘录服务，增删改查、置顶，并维护向量索引
# 主要类: MemoService
# 流程:
#   create: 校验项目 → 写记录 → 嵌入 → upsert 向量
#   update: 校验备忘录 → 改记录 → 重新嵌入 → upsert 向量
#   delete: 校验备忘录 → 删记录 → 删向量（失败只记日志）
#   toggle_pin: 校验备忘录 → 翻转置顶 → 刷新 updated_at（不碰向量）
# 设计: 记录是唯一事实来源。嵌入 / upsert 失败时不回滚记录，
#       抛 PartialSyncFailure(记录, 原因)，由调用方决定是否重试索引

"""
备忘录服务
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.ai_client import Embedder
from core.errors import InfrastructureFailure, PartialSyncFailure
from core.models import Memo
from core.ownership import OwnershipResolver
from core.repositories import MemoRepository, ProjectRepository
from core.vector_index import VectorIndex

logger = logging.getLogger("memo_service")


class MemoService:

    def __init__(self, db: AsyncSession, vector_index: VectorIndex, embedder: Embedder):
        self.memos = MemoRepository(db)
        self.projects = ProjectRepository(db)
        self.ownership = OwnershipResolver(db)
        self.vector_index = vector_index
        self.embedder = embedder

    async def create_memo(self, user_id: int, project_id: int, content: str) -> Memo:
        await self.ownership.authorize_project(user_id, project_id)
        memo = await self.memos.create(project_id, content)
        logger.info("Created memo %s in project %s", memo.id, project_id)

        await self._sync_index(memo)
        return memo

    async def get_memo(self, user_id: int, memo_id: int) -> Memo:
        return await self.ownership.authorize_memo(user_id, memo_id)

    async def list_memos(self, user_id: int, project_id: Optional[int] = None) -> List[Memo]:
        """
        project_id 为空时返回用户所有项目下的备忘录（按项目顺序拼接，
        每个项目内部仍是置顶优先 → 最近更新优先）
        """
        if project_id is not None:
            await self.ownership.authorize_project(user_id, project_id)
            return await self.memos.find_by_project_id(project_id)

        memos: List[Memo] = []
        for project in await self.projects.find_by_owner_id(user_id):
            await self.ownership.authorize_project(user_id, project.id)
            memos.extend(await self.memos.find_by_project_id(project.id))
        return memos

    async def update_memo(self, user_id: int, memo_id: int, content: str) -> Memo:
        """内容未变也会重新嵌入，顺带修复之前失败的索引写入"""
        await self.ownership.authorize_memo(user_id, memo_id)
        memo = await self.memos.update(memo_id, content)
        logger.info("Updated memo %s", memo_id)

        await self._sync_index(memo)
        return memo

    async def delete_memo(self, user_id: int, memo_id: int) -> None:
        await self.ownership.authorize_memo(user_id, memo_id)
        await self.memos.delete(memo_id)
        logger.info("Deleted memo %s", memo_id)

        try:
            await self.vector_index.delete(memo_id)
        except InfrastructureFailure as e:
            # 孤儿条目检索时回填失败会被丢弃，不影响删除结果
            logger.warning("[orphan] 向量条目清理失败 memo=%s: %s", memo_id, e)

    async def toggle_pin(self, user_id: int, memo_id: int) -> Memo:
        await self.ownership.authorize_memo(user_id, memo_id)
        memo = await self.memos.toggle_pin(memo_id)
        logger.info("Memo %s pinned=%s", memo_id, memo.is_pinned)
        return memo

    async def _sync_index(self, memo: Memo) -> None:
        try:
            vector = await self.embedder.embed(memo.content)
            await self.vector_index.upsert(memo.id, memo.project_id, vector)
        except InfrastructureFailure as e:
            logger.warning("[sync] memo=%s 索引同步失败 (%s): %s", memo.id, e.source, e.detail)
            raise PartialSyncFailure(memo, e) from e
