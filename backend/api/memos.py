# backend/api/memos.py
# 功能: 备忘录 API，增删改查、置顶
# 主要路由: POST/GET /api/memos/, GET/PUT/DELETE /api/memos/{memo_id}, PATCH /api/memos/{memo_id}/pin
# 关联: core/memo_service.py；索引同步失败时由 main.py 的异常处理返回 202 + 已保存的记录

"""
备忘录管理 API
"""

from datetime import datetime
from typing import Annotated, Optional, List

from fastapi import APIRouter, Depends
from pydantic import AfterValidator, BaseModel, Field

from api.deps import get_current_user_id, get_memo_service
from core.config import settings
from core.memo_service import MemoService

router = APIRouter(prefix="/api/memos", tags=["memos"])


# ============== Schemas ==============

def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("Content cannot be empty")
    return v


MemoContent = Annotated[
    str,
    Field(min_length=1, max_length=settings.memo_max_length),
    AfterValidator(_not_blank),
]


class MemoCreate(BaseModel):
    """创建备忘录"""
    project_id: int
    content: MemoContent


class MemoUpdate(BaseModel):
    """更新备忘录内容"""
    content: MemoContent


class MemoResponse(BaseModel):
    """备忘录响应"""
    id: int
    project_id: int
    content: str
    is_pinned: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ============== Routes ==============

@router.post("/", response_model=MemoResponse, status_code=201)
async def create_memo(
    data: MemoCreate,
    user_id: int = Depends(get_current_user_id),
    service: MemoService = Depends(get_memo_service),
):
    return await service.create_memo(user_id, data.project_id, data.content)


@router.get("/", response_model=List[MemoResponse])
async def list_memos(
    project_id: Optional[int] = None,
    user_id: int = Depends(get_current_user_id),
    service: MemoService = Depends(get_memo_service),
):
    """获取备忘录列表；不传 project_id 时返回用户全部项目的备忘录"""
    return await service.list_memos(user_id, project_id)


@router.get("/{memo_id}", response_model=MemoResponse)
async def get_memo(
    memo_id: int,
    user_id: int = Depends(get_current_user_id),
    service: MemoService = Depends(get_memo_service),
):
    return await service.get_memo(user_id, memo_id)


@router.put("/{memo_id}", response_model=MemoResponse)
async def update_memo(
    memo_id: int,
    data: MemoUpdate,
    user_id: int = Depends(get_current_user_id),
    service: MemoService = Depends(get_memo_service),
):
    return await service.update_memo(user_id, memo_id, data.content)


@router.delete("/{memo_id}")
async def delete_memo(
    memo_id: int,
    user_id: int = Depends(get_current_user_id),
    service: MemoService = Depends(get_memo_service),
):
    await service.delete_memo(user_id, memo_id)
    return {"message": "Memo deleted"}


@router.patch("/{memo_id}/pin", response_model=MemoResponse)
async def toggle_pin(
    memo_id: int,
    user_id: int = Depends(get_current_user_id),
    service: MemoService = Depends(get_memo_service),
):
    """切换置顶状态"""
    return await service.toggle_pin(user_id, memo_id)
