# backend/tests/test_essay_service.py
# 功能: 文章服务测试，归属校验、更新、置顶、列表

import pytest

from core.errors import NotFound, Unauthorized
from core.essay_service import EssayService

OWNER = 1
STRANGER = 2


@pytest.fixture
def service(db_session):
    return EssayService(db_session)


@pytest.mark.asyncio
async def test_crud_roundtrip(service, make_project):
    project = await make_project(OWNER)
    essay = await service.create_essay(OWNER, project.id, "Draft", "body")
    assert essay.created_at == essay.updated_at

    updated = await service.update_essay(OWNER, essay.id, "Final", "longer body")
    assert updated.title == "Final"
    assert updated.content == "longer body"
    assert updated.updated_at > updated.created_at

    await service.delete_essay(OWNER, essay.id)
    with pytest.raises(NotFound) as exc:
        await service.get_essay(OWNER, essay.id)
    assert exc.value.resource == "essay"


@pytest.mark.asyncio
async def test_stranger_is_rejected(service, make_project):
    project = await make_project(OWNER)
    essay = await service.create_essay(OWNER, project.id, "Mine", "secret")

    for call in (
        service.get_essay(STRANGER, essay.id),
        service.update_essay(STRANGER, essay.id, "x", "y"),
        service.delete_essay(STRANGER, essay.id),
        service.toggle_pin(STRANGER, essay.id),
        service.list_essays(STRANGER, project.id),
        service.create_essay(STRANGER, project.id, "t", "c"),
    ):
        with pytest.raises(Unauthorized):
            await call

    assert (await service.get_essay(OWNER, essay.id)).title == "Mine"


@pytest.mark.asyncio
async def test_pinned_listed_first(service, make_project):
    project = await make_project(OWNER)
    old = await service.create_essay(OWNER, project.id, "old", "")
    new = await service.create_essay(OWNER, project.id, "new", "")

    assert [e.id for e in await service.list_essays(OWNER, project.id)] == [new.id, old.id]

    await service.toggle_pin(OWNER, old.id)
    assert [e.id for e in await service.list_essays(OWNER, project.id)] == [old.id, new.id]


@pytest.mark.asyncio
async def test_list_all_projects(service, make_project):
    p1 = await make_project(OWNER, "p1")
    p2 = await make_project(OWNER, "p2")
    await service.create_essay(OWNER, p1.id, "a", "")
    await service.create_essay(OWNER, p2.id, "b", "")

    titles = sorted(e.title for e in await service.list_essays(OWNER))
    assert titles == ["a", "b"]
