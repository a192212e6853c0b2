# backend/core/vector_index.py
# 功能: 备忘录向量索引（Vector Index Adapter）
# 主要类: VectorIndex (接口), QdrantVectorIndex (生产), InMemoryVectorIndex (本地/测试)
# 主要函数: get_vector_index(): 按 settings.vector_backend 返回单例
# 数据结构: 条目以 memo_id 为键，payload = {memo_id, project_id}
# 设计:
#   - upsert 幂等，覆盖同一 memo_id 的旧条目
#   - search 的项目过滤在索引查询内部完成（不是查询后再过滤）
#   - delete 幂等，条目不存在不报错
#   - 任何远端失败统一抛 InfrastructureFailure(vector_index)

"""
向量索引

用法:
    index = get_vector_index()
    await index.upsert(memo.id, memo.project_id, vector)
    memo_ids = await index.search(project_id, query_vector, limit=5)
    await index.delete(memo.id)
"""

import asyncio
import logging
import math
from functools import lru_cache
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

from core.config import settings
from core.errors import InfrastructureFailure, VECTOR_INDEX

logger = logging.getLogger("vector_index")


@runtime_checkable
class VectorIndex(Protocol):
    """向量索引接口"""

    async def upsert(self, memo_id: int, project_id: int, vector: List[float]) -> None: ...

    async def search(self, project_id: int, query_vector: List[float], limit: int) -> List[int]: ...

    async def delete(self, memo_id: int) -> None: ...


# ============== Qdrant ==============

class QdrantVectorIndex:
    """
    Qdrant 实现

    point id 直接使用 memo_id（无符号整数），
    project_id 写入 payload 并建立整数索引用于过滤。
    """

    def __init__(
        self,
        url: str,
        collection_name: str,
        dimension: int,
        api_key: str = "",
        client=None,
    ):
        from qdrant_client import AsyncQdrantClient

        self.collection_name = collection_name
        self.dimension = dimension
        self.client = client or AsyncQdrantClient(url=url, api_key=api_key or None)
        self._ready = False
        self._ready_lock = asyncio.Lock()

    async def ensure_collection(self) -> None:
        """集合不存在时创建（余弦距离）"""
        from qdrant_client.models import Distance, PayloadSchemaType, VectorParams

        if self._ready:
            return
        async with self._ready_lock:
            if self._ready:
                return
            try:
                if not await self.client.collection_exists(self.collection_name):
                    await self.client.create_collection(
                        collection_name=self.collection_name,
                        vectors_config=VectorParams(size=self.dimension, distance=Distance.COSINE),
                    )
                    await self.client.create_payload_index(
                        collection_name=self.collection_name,
                        field_name="project_id",
                        field_schema=PayloadSchemaType.INTEGER,
                    )
                    logger.info("[qdrant] 已创建集合 %s (dim=%d)", self.collection_name, self.dimension)
            except Exception as e:
                raise InfrastructureFailure(VECTOR_INDEX, f"ensure collection: {e}") from e
            self._ready = True

    async def upsert(self, memo_id: int, project_id: int, vector: List[float]) -> None:
        from qdrant_client.models import PointStruct

        await self.ensure_collection()
        try:
            await self.client.upsert(
                collection_name=self.collection_name,
                points=[
                    PointStruct(
                        id=memo_id,
                        vector=list(vector),
                        payload={"memo_id": memo_id, "project_id": project_id},
                    )
                ],
            )
        except Exception as e:
            raise InfrastructureFailure(VECTOR_INDEX, f"upsert memo {memo_id}: {e}") from e

    async def search(self, project_id: int, query_vector: List[float], limit: int) -> List[int]:
        from qdrant_client.models import FieldCondition, Filter, MatchValue

        await self.ensure_collection()
        try:
            response = await self.client.query_points(
                collection_name=self.collection_name,
                query=list(query_vector),
                query_filter=Filter(must=[
                    FieldCondition(key="project_id", match=MatchValue(value=project_id)),
                ]),
                limit=limit,
                with_payload=True,
            )
        except Exception as e:
            raise InfrastructureFailure(VECTOR_INDEX, f"search project {project_id}: {e}") from e

        memo_ids = []
        for point in response.points:
            memo_id = (point.payload or {}).get("memo_id", point.id)
            memo_ids.append(int(memo_id))
        return memo_ids

    async def delete(self, memo_id: int) -> None:
        from qdrant_client.models import PointIdsList

        await self.ensure_collection()
        try:
            await self.client.delete(
                collection_name=self.collection_name,
                points_selector=PointIdsList(points=[memo_id]),
            )
        except Exception as e:
            raise InfrastructureFailure(VECTOR_INDEX, f"delete memo {memo_id}: {e}") from e


# ============== 内存实现 ==============

def cosine_similarity(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorIndex:
    """
    进程内向量索引（本地开发 / 测试）

    行为与 Qdrant 实现一致：按 project_id 先过滤，再按余弦相似度排序；
    分数相同按 memo_id 升序，结果确定。
    """

    def __init__(self, dimension: Optional[int] = None):
        self.dimension = dimension
        self.entries: Dict[int, Tuple[int, List[float]]] = {}

    async def upsert(self, memo_id: int, project_id: int, vector: List[float]) -> None:
        if self.dimension is not None and len(vector) != self.dimension:
            raise InfrastructureFailure(
                VECTOR_INDEX,
                f"vector dimension {len(vector)} != {self.dimension}",
            )
        self.entries[memo_id] = (project_id, list(vector))

    async def search(self, project_id: int, query_vector: List[float], limit: int) -> List[int]:
        scored = [
            (cosine_similarity(query_vector, vector), memo_id)
            for memo_id, (entry_project_id, vector) in self.entries.items()
            if entry_project_id == project_id
        ]
        scored.sort(key=lambda item: (-item[0], item[1]))
        return [memo_id for _score, memo_id in scored[:limit]]

    async def delete(self, memo_id: int) -> None:
        self.entries.pop(memo_id, None)

    def __contains__(self, memo_id: int) -> bool:
        return memo_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)


# ============== 单例 ==============

@lru_cache()
def get_vector_index() -> VectorIndex:
    """按配置返回向量索引单例"""
    backend = (settings.vector_backend or "qdrant").lower().strip()
    if backend == "memory":
        return InMemoryVectorIndex(dimension=settings.embedding_dimension)
    return QdrantVectorIndex(
        url=settings.qdrant_url,
        collection_name=settings.qdrant_collection,
        dimension=settings.embedding_dimension,
        api_key=settings.qdrant_api_key,
    )
