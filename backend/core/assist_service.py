# backend/core/assist_service.py
# 功能: 检索增强写作助手，嵌入提示 → 项目内向量检索 → 回填备忘录 → 生成
# 主要类: AssistService
# 数据结构: Evidence(id, content, created_at), AssistResult(suggestion, similar_memos, dropped_candidates)
# 设计:
#   - 步骤严格串行（后一步依赖前一步结果）
#   - 嵌入 / 生成 / 检索失败对本次请求是致命的（InfrastructureFailure）
#   - 索引返回的候选在回填时再次核对 project_id；记录已不存在或不属于本项目的候选直接丢弃，
#     只计数写日志（记录与索引之间允许短暂不一致）
#   - 没有相关备忘录不是错误：以空上下文调用生成

"""
Assist Service

一次请求的流程:
1. 校验项目归属
2. embed(prompt) → 查询向量
3. vector_index.search(project_id, 查询向量, limit)
4. 逐个回填备忘录并复核 project_id
5. 按检索排名顺序组成上下文
6. generate(prompt, 上下文)
7. 返回生成文本 + 证据列表（同样按排名顺序）
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from core.ai_client import Embedder, TextGenerator
from core.ownership import OwnershipResolver
from core.repositories import MemoRepository
from core.vector_index import VectorIndex

logger = logging.getLogger("assist_service")


@dataclass
class Evidence:
    """检索到的备忘录"""
    id: int
    content: str
    created_at: datetime


@dataclass
class AssistResult:
    suggestion: str
    similar_memos: List[Evidence] = field(default_factory=list)
    dropped_candidates: int = 0


class AssistService:

    def __init__(
        self,
        db: AsyncSession,
        vector_index: VectorIndex,
        embedder: Embedder,
        text_generator: TextGenerator,
    ):
        self.memos = MemoRepository(db)
        self.ownership = OwnershipResolver(db)
        self.vector_index = vector_index
        self.embedder = embedder
        self.text_generator = text_generator

    async def get_assistance(
        self,
        user_id: int,
        project_id: int,
        prompt: str,
        limit: int = 5,
    ) -> AssistResult:
        await self.ownership.authorize_project(user_id, project_id)

        query_vector = await self.embedder.embed(prompt)
        candidate_ids = await self.vector_index.search(project_id, query_vector, limit)

        evidence: List[Evidence] = []
        dropped = 0
        for memo_id in candidate_ids:
            memo = await self.memos.find_by_id(memo_id)
            if memo is None or memo.project_id != project_id:
                dropped += 1
                continue
            evidence.append(Evidence(id=memo.id, content=memo.content, created_at=memo.created_at))

        logger.info(
            "[assist] project=%s candidates=%d kept=%d dropped=%d",
            project_id, len(candidate_ids), len(evidence), dropped,
        )

        context = [e.content for e in evidence]
        suggestion = await self.text_generator.generate(prompt, context)

        return AssistResult(
            suggestion=suggestion,
            similar_memos=evidence,
            dropped_candidates=dropped,
        )
