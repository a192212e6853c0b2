# backend/api/assist.py
# 功能: 写作助手 API，基于项目内相似备忘录生成写作建议
# 主要路由: POST /api/projects/{project_id}/assist
# 数据结构: AssistRequest, AssistResponse, SimilarMemo

"""
写作助手 API
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from api.deps import get_current_user_id, get_assist_service
from core.assist_service import AssistService
from core.config import settings

router = APIRouter(prefix="/api/projects", tags=["assist"])


# ============== Schemas ==============

class AssistRequest(BaseModel):
    prompt: str = Field(min_length=1)
    limit: int = Field(default=settings.assist_default_limit, ge=1, le=settings.assist_max_limit)

    @field_validator("prompt")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Prompt cannot be empty")
        return v


class SimilarMemo(BaseModel):
    id: int
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AssistResponse(BaseModel):
    suggestion: str
    similar_memos: List[SimilarMemo]
    dropped_candidates: int = 0

    model_config = {"from_attributes": True}


# ============== Routes ==============

@router.post("/{project_id}/assist", response_model=AssistResponse)
async def assist(
    project_id: int,
    data: AssistRequest,
    user_id: int = Depends(get_current_user_id),
    service: AssistService = Depends(get_assist_service),
):
    """检索项目内相似备忘录，作为上下文生成写作建议"""
    return await service.get_assistance(user_id, project_id, data.prompt, data.limit)
