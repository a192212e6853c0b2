# backend/api/deps.py
# 功能: 路由依赖，当前用户、数据库 Session、各服务实例
# 主要函数: get_current_user_id(), get_project_service(), get_memo_service(),
#           get_essay_service(), get_assist_service()
# 注意: 用户身份由上游认证层校验后通过 X-User-Id 头传入，这里只解析不验证

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from core.ai_client import Embedder, TextGenerator, get_embedder, get_text_generator
from core.assist_service import AssistService
from core.database import get_db
from core.essay_service import EssayService
from core.memo_service import MemoService
from core.project_service import ProjectService
from core.vector_index import VectorIndex, get_vector_index


def get_current_user_id(x_user_id: str = Header(default=None)) -> int:
    """从 X-User-Id 头解析当前用户；缺失或非整数返回 401"""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing or invalid X-User-Id header")
    try:
        return int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Missing or invalid X-User-Id header")


def get_project_service(
    db: AsyncSession = Depends(get_db),
    vector_index: VectorIndex = Depends(get_vector_index),
) -> ProjectService:
    return ProjectService(db, vector_index)


def get_memo_service(
    db: AsyncSession = Depends(get_db),
    vector_index: VectorIndex = Depends(get_vector_index),
    embedder: Embedder = Depends(get_embedder),
) -> MemoService:
    return MemoService(db, vector_index, embedder)


def get_essay_service(db: AsyncSession = Depends(get_db)) -> EssayService:
    return EssayService(db)


def get_assist_service(
    db: AsyncSession = Depends(get_db),
    vector_index: VectorIndex = Depends(get_vector_index),
    embedder: Embedder = Depends(get_embedder),
    text_generator: TextGenerator = Depends(get_text_generator),
) -> AssistService:
    return AssistService(db, vector_index, embedder, text_generator)
