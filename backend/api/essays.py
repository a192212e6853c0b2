# backend/api/essays.py
# 功能: 文章 API，增删改查、置顶
# 主要路由: POST/GET /api/essays/, GET/PUT/DELETE /api/essays/{essay_id}, PATCH /api/essays/{essay_id}/pin

from datetime import datetime
from typing import Annotated, Optional, List

from fastapi import APIRouter, Depends
from pydantic import AfterValidator, BaseModel, Field

from api.deps import get_current_user_id, get_essay_service
from core.config import settings
from core.essay_service import EssayService

router = APIRouter(prefix="/api/essays", tags=["essays"])


# ============== Schemas ==============

def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("Field cannot be empty")
    return v


EssayTitle = Annotated[
    str,
    Field(min_length=1, max_length=settings.essay_title_max_length),
    AfterValidator(_not_blank),
]


class EssayCreate(BaseModel):
    project_id: int
    title: EssayTitle
    content: str


class EssayUpdate(BaseModel):
    title: EssayTitle
    content: str


class EssayResponse(BaseModel):
    id: int
    project_id: int
    title: str
    content: str
    is_pinned: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ============== Routes ==============

@router.post("/", response_model=EssayResponse, status_code=201)
async def create_essay(
    data: EssayCreate,
    user_id: int = Depends(get_current_user_id),
    service: EssayService = Depends(get_essay_service),
):
    return await service.create_essay(user_id, data.project_id, data.title, data.content)


@router.get("/", response_model=List[EssayResponse])
async def list_essays(
    project_id: Optional[int] = None,
    user_id: int = Depends(get_current_user_id),
    service: EssayService = Depends(get_essay_service),
):
    return await service.list_essays(user_id, project_id)


@router.get("/{essay_id}", response_model=EssayResponse)
async def get_essay(
    essay_id: int,
    user_id: int = Depends(get_current_user_id),
    service: EssayService = Depends(get_essay_service),
):
    return await service.get_essay(user_id, essay_id)


@router.put("/{essay_id}", response_model=EssayResponse)
async def update_essay(
    essay_id: int,
    data: EssayUpdate,
    user_id: int = Depends(get_current_user_id),
    service: EssayService = Depends(get_essay_service),
):
    return await service.update_essay(user_id, essay_id, data.title, data.content)


@router.delete("/{essay_id}")
async def delete_essay(
    essay_id: int,
    user_id: int = Depends(get_current_user_id),
    service: EssayService = Depends(get_essay_service),
):
    await service.delete_essay(user_id, essay_id)
    return {"message": "Essay deleted"}


@router.patch("/{essay_id}/pin", response_model=EssayResponse)
async def toggle_pin(
    essay_id: int,
    user_id: int = Depends(get_current_user_id),
    service: EssayService = Depends(get_essay_service),
):
    return await service.toggle_pin(user_id, essay_id)
