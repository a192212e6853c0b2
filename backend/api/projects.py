# backend/api/projects.py
# 功能: 项目管理API，CRUD
# 主要路由: POST/GET /api/projects/, GET/PUT/DELETE /api/projects/{project_id}
# 数据结构: ProjectCreate, ProjectUpdate, ProjectResponse

"""
项目管理 API
"""

from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from api.deps import get_current_user_id, get_project_service
from core.config import settings
from core.project_service import ProjectService
from core.repositories import UNSET

router = APIRouter(prefix="/api/projects", tags=["projects"])


# ============== Schemas ==============

class ProjectCreate(BaseModel):
    """创建项目请求"""
    name: str = Field(min_length=1, max_length=settings.project_name_max_length)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v


class ProjectUpdate(BaseModel):
    """
    更新项目请求
    未传的字段保持不变；description 显式传 null 表示清空
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=settings.project_name_max_length)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v


class ProjectResponse(BaseModel):
    """项目响应"""
    id: int
    owner_id: int
    name: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ============== Routes ==============

@router.post("/", response_model=ProjectResponse, status_code=201)
async def create_project(
    data: ProjectCreate,
    user_id: int = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service),
):
    """创建项目（同一用户下名称唯一）"""
    return await service.create_project(user_id, data.name, data.description)


@router.get("/", response_model=List[ProjectResponse])
async def list_projects(
    user_id: int = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service),
):
    """获取当前用户的项目列表（最新创建在前）"""
    return await service.list_projects(user_id)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service),
):
    return await service.get_project(user_id, project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    user_id: int = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service),
):
    """部分更新项目"""
    fields = data.model_fields_set
    name = data.name if "name" in fields and data.name is not None else UNSET
    description = data.description if "description" in fields else UNSET
    return await service.update_project(user_id, project_id, name=name, description=description)


@router.delete("/{project_id}")
async def delete_project(
    project_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service),
):
    """删除项目（级联删除其下备忘录和文章）"""
    await service.delete_project(user_id, project_id)
    return {"message": "Project deleted"}
