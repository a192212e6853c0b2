# backend/tests/test_project_service.py
# 功能: 项目服务测试，名称冲突、部分更新、归属校验、删除时清理向量条目

import pytest

from core.errors import NameConflict, NotFound, Unauthorized
from core.memo_service import MemoService
from core.project_service import ProjectService

U1 = 1
U2 = 2


@pytest.fixture
def service(db_session, vector_index):
    return ProjectService(db_session, vector_index)


@pytest.fixture
def memo_service(db_session, vector_index, embedder):
    return MemoService(db_session, vector_index, embedder)


class TestNameConflict:

    @pytest.mark.asyncio
    async def test_same_user_same_name_conflicts(self, service):
        await service.create_project(U1, "Notebook")
        with pytest.raises(NameConflict):
            await service.create_project(U1, "Notebook")

    @pytest.mark.asyncio
    async def test_other_user_may_reuse_name(self, service):
        await service.create_project(U1, "Notebook")
        project = await service.create_project(U2, "Notebook")
        assert project.owner_id == U2

    @pytest.mark.asyncio
    async def test_rename_into_existing_name_conflicts(self, service):
        await service.create_project(U1, "Notebook")
        other = await service.create_project(U1, "Journal")
        with pytest.raises(NameConflict):
            await service.update_project(U1, other.id, name="Notebook")

    @pytest.mark.asyncio
    async def test_rename_to_own_name_is_fine(self, service):
        project = await service.create_project(U1, "Notebook")
        updated = await service.update_project(U1, project.id, name="Notebook")
        assert updated.name == "Notebook"


class TestUpdate:

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, service):
        project = await service.create_project(U1, "Notebook", "desc")
        updated = await service.update_project(U1, project.id, name="Renamed")
        assert updated.name == "Renamed"
        assert updated.description == "desc"
        assert updated.updated_at > updated.created_at

    @pytest.mark.asyncio
    async def test_description_can_be_cleared(self, service):
        project = await service.create_project(U1, "Notebook", "desc")
        updated = await service.update_project(U1, project.id, description=None)
        assert updated.description is None
        assert updated.name == "Notebook"


class TestOwnership:

    @pytest.mark.asyncio
    async def test_stranger_rejected(self, service):
        project = await service.create_project(U1, "Notebook")
        with pytest.raises(Unauthorized):
            await service.get_project(U2, project.id)
        with pytest.raises(Unauthorized):
            await service.update_project(U2, project.id, name="Mine now")
        with pytest.raises(Unauthorized):
            await service.delete_project(U2, project.id)

        assert (await service.get_project(U1, project.id)).name == "Notebook"

    @pytest.mark.asyncio
    async def test_list_only_own_projects_newest_first(self, service):
        first = await service.create_project(U1, "first")
        second = await service.create_project(U1, "second")
        await service.create_project(U2, "theirs")

        ids = [p.id for p in await service.list_projects(U1)]
        assert ids == [second.id, first.id]


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_cascades_and_cleans_index(self, service, memo_service, vector_index):
        project = await service.create_project(U1, "Notebook")
        keep = await service.create_project(U1, "Other")
        m1 = await memo_service.create_memo(U1, project.id, "one")
        m2 = await memo_service.create_memo(U1, project.id, "two")
        survivor = await memo_service.create_memo(U1, keep.id, "stays")

        await service.delete_project(U1, project.id)

        with pytest.raises(NotFound) as exc:
            await service.get_project(U1, project.id)
        assert exc.value.resource == "project"
        with pytest.raises(NotFound):
            await memo_service.get_memo(U1, m1.id)
        assert m1.id not in vector_index
        assert m2.id not in vector_index
        assert survivor.id in vector_index

    @pytest.mark.asyncio
    async def test_index_cleanup_failure_is_tolerated(self, service, memo_service, vector_index):
        project = await service.create_project(U1, "Notebook")
        memo = await memo_service.create_memo(U1, project.id, "one")
        vector_index.fail_delete = True

        await service.delete_project(U1, project.id)

        with pytest.raises(NotFound):
            await service.get_project(U1, project.id)
        assert memo.id in vector_index


class TestConcurrentNames:

    @pytest.mark.asyncio
    async def test_create_racing_past_precheck(self, service, monkeypatch):
        await service.create_project(U1, "Notebook")
        # 模拟另一个请求在预检之后抢先写入同名项目
        async def _no_match(owner_id, name):
            return None

        monkeypatch.setattr(service.projects, "find_by_owner_and_name", _no_match)

        with pytest.raises(NameConflict):
            await service.create_project(U1, "Notebook")
