# backend/tests/conftest.py
# 功能: 共用测试夹具，内存数据库 Session、确定性 AI 能力、可注入故障的替身
# 主要夹具: db_session, vector_index, embedder, generator, make_project

"""
测试夹具

- 每个测试一个全新的内存 SQLite（StaticPool + 外键约束开启）
- 嵌入用 HashingEmbedder（词面重合越多越相似），生成用 EchoGenerator
"""

import pytest

from core.ai_client import HashingEmbedder, EchoGenerator
from core.database import create_engine_for, get_session_maker, init_db
from core.errors import InfrastructureFailure, EMBEDDING, VECTOR_INDEX
from core.repositories import ProjectRepository
from core.vector_index import InMemoryVectorIndex

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
TEST_DIMENSION = 4096


class FailingEmbedder(HashingEmbedder):
    """fail=True 时模拟嵌入服务不可用"""

    def __init__(self, dimension: int = TEST_DIMENSION):
        super().__init__(dimension)
        self.fail = False

    async def embed(self, text):
        if self.fail:
            raise InfrastructureFailure(EMBEDDING, "simulated embedding outage")
        return await super().embed(text)


class FlakyVectorIndex(InMemoryVectorIndex):
    """可分别让 upsert / search / delete 失败的内存索引"""

    def __init__(self, dimension: int = TEST_DIMENSION):
        super().__init__(dimension)
        self.fail_upsert = False
        self.fail_search = False
        self.fail_delete = False

    async def upsert(self, memo_id, project_id, vector):
        if self.fail_upsert:
            raise InfrastructureFailure(VECTOR_INDEX, "simulated upsert failure")
        await super().upsert(memo_id, project_id, vector)

    async def search(self, project_id, query_vector, limit):
        if self.fail_search:
            raise InfrastructureFailure(VECTOR_INDEX, "simulated search failure")
        return await super().search(project_id, query_vector, limit)

    async def delete(self, memo_id):
        if self.fail_delete:
            raise InfrastructureFailure(VECTOR_INDEX, "simulated delete failure")
        await super().delete(memo_id)


@pytest.fixture
async def db_session():
    """创建测试用的内存数据库"""
    engine = create_engine_for(TEST_DB_URL)
    await init_db(engine)

    SessionLocal = get_session_maker(engine)
    async with SessionLocal() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def vector_index():
    return FlakyVectorIndex()


@pytest.fixture
def embedder():
    return FailingEmbedder()


@pytest.fixture
def generator():
    return EchoGenerator()


@pytest.fixture
def make_project(db_session):
    """直接通过仓储建项目（绕过服务层）"""
    repo = ProjectRepository(db_session)

    async def _make(owner_id: int, name: str = "Notebook", description=None):
        return await repo.create(owner_id, name, description)

    return _make
