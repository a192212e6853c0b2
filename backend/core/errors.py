# backend/core/errors.py
# 功能: 服务层错误分类，调用方可区分的稳定类别
# 主要类: ServiceError, NotFound, Unauthorized, NameConflict,
#         InfrastructureFailure, PartialSyncFailure
# 关联: main.py 注册统一异常处理，将 kind 映射为 HTTP 状态码

"""
服务层错误

- NotFound / Unauthorized / NameConflict: 领域结果，直接返回调用方，不重试
- InfrastructureFailure: 外部依赖（嵌入、生成、向量索引、关系库）调用失败，
  只返回通用提示，原始错误仅写日志
- PartialSyncFailure: 记录已写入，但向量索引同步失败；携带写入成功的记录
"""

from typing import Any, Optional


class ServiceError(Exception):
    """所有服务层错误的基类"""

    kind = "service_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ServiceError):
    """资源不存在（project / memo / essay）"""

    kind = "not_found"

    def __init__(self, resource: str):
        super().__init__(f"{resource.capitalize()} not found")
        self.resource = resource


class Unauthorized(ServiceError):
    """归属链可解析，但所有者不是当前用户"""

    kind = "unauthorized"

    def __init__(self):
        super().__init__("You don't have permission to access this resource")


class NameConflict(ServiceError):
    """同一用户下项目重名"""

    kind = "name_conflict"

    def __init__(self, name: str):
        super().__init__(f"Project name '{name}' already exists")
        self.name = name


# InfrastructureFailure.source 取值
EMBEDDING = "embedding"
GENERATION = "generation"
VECTOR_INDEX = "vector_index"
RECORD_STORE = "record_store"

_GENERIC_MESSAGES = {
    EMBEDDING: "External AI service error",
    GENERATION: "External AI service error",
    VECTOR_INDEX: "Vector database error",
    RECORD_STORE: "Internal server error",
}


class InfrastructureFailure(ServiceError):
    """外部依赖失败；message 为通用提示，detail 仅用于日志"""

    kind = "infrastructure_failure"

    def __init__(self, source: str, detail: str = ""):
        super().__init__(_GENERIC_MESSAGES.get(source, "Internal server error"))
        self.source = source
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.source}: {self.detail}" if self.detail else self.source


class PartialSyncFailure(ServiceError):
    """记录写入成功，向量索引未同步"""

    kind = "partial_sync_failure"

    def __init__(self, record: Any, cause: Optional[InfrastructureFailure] = None):
        super().__init__("Saved, but search index could not be updated")
        self.record = record
        self.cause = cause
