# backend/main.py
# 功能: FastAPI应用入口，日志配置、启动建表、服务层错误到 HTTP 响应的统一映射
# 主要函数: create_app(), register_error_handlers()
# 数据结构: 错误响应 {"error": 通用提示, "kind": 错误类别, ...}

"""
Lekha Backend Entry Point
启动命令: python main.py
"""

import sys
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import settings
from core.errors import (
    ServiceError,
    NotFound,
    Unauthorized,
    NameConflict,
    InfrastructureFailure,
    PartialSyncFailure,
    EMBEDDING,
    GENERATION,
)


# ===== 日志配置 =====
def _setup_logging():
    """配置应用日志，确保服务层日志可见"""
    log_level = logging.DEBUG if settings.debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
    datefmt = "%H:%M:%S"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    # 为关键模块设置日志级别
    for name in (
        "assist_service", "memo_service", "project_service", "essay_service",
        "ownership", "vector_index", "ai_client", "repositories",
    ):
        lg = logging.getLogger(name)
        lg.setLevel(log_level)
        if not lg.handlers:
            lg.addHandler(handler)
        lg.propagate = False  # 避免重复输出

    # root logger 保持 INFO（避免 SQLAlchemy 等噪音）
    logging.basicConfig(level=logging.INFO, format=fmt, datefmt=datefmt)


_setup_logging()
logger = logging.getLogger("startup")


def _status_for(exc: ServiceError) -> int:
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, Unauthorized):
        return 403
    if isinstance(exc, NameConflict):
        return 409
    if isinstance(exc, PartialSyncFailure):
        return 202
    if isinstance(exc, InfrastructureFailure) and exc.source in (EMBEDDING, GENERATION):
        return 502
    return 500


def register_error_handlers(app: FastAPI) -> None:
    """服务层错误统一转换为稳定的 HTTP 响应"""

    @app.exception_handler(ServiceError)
    async def _service_error_handler(request: Request, exc: ServiceError):
        body = {"error": exc.message, "kind": exc.kind}
        if isinstance(exc, NotFound):
            body["resource"] = exc.resource
        elif isinstance(exc, InfrastructureFailure):
            body["source"] = exc.source
            logger.error("%s %s → infrastructure failure: %s", request.method, request.url.path, exc)
        elif isinstance(exc, PartialSyncFailure):
            body["record"] = jsonable_encoder(exc.record.to_dict())
            if exc.cause is not None:
                body["source"] = exc.cause.source
        return JSONResponse(status_code=_status_for(exc), content=body)


def create_app() -> FastAPI:
    """创建FastAPI应用实例"""
    app = FastAPI(
        title="Lekha",
        description="项目化的备忘录 / 文章管理，以及基于历史备忘录的写作助手",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # 健康检查
    @app.get("/health")
    async def health_check():
        return {"status": "ok", "message": "Lekha backend is running"}

    # 注册路由（路由前缀已在各模块中定义）
    from api import projects, memos, essays, assist

    app.include_router(projects.router)
    app.include_router(memos.router)
    app.include_router(essays.router)
    app.include_router(assist.router)

    # 启动时确保数据库 schema 完整
    @app.on_event("startup")
    async def on_startup():
        from core.database import init_db

        try:
            await init_db()
            logger.info("数据库 schema 校验完成")
        except Exception as e:
            logger.warning(f"启动时校验数据库 schema 失败: {e}")
            raise

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.backend_port,
        reload=settings.debug,
    )
