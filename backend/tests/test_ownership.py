# backend/tests/test_ownership.py
# 功能: 归属链校验测试，NotFound 区分资源类型，非所有者统一 Unauthorized

import pytest

from core.errors import NotFound, Unauthorized
from core.ownership import OwnershipResolver, ProjectRef, MemoRef, EssayRef
from core.repositories import MemoRepository, EssayRepository

OWNER = 1
STRANGER = 2


@pytest.fixture
async def seeded(db_session, make_project):
    project = await make_project(OWNER)
    memo = await MemoRepository(db_session).create(project.id, "memo")
    essay = await EssayRepository(db_session).create(project.id, "title", "essay")
    return project, memo, essay


class TestAuthorize:

    @pytest.mark.asyncio
    async def test_owner_resolves_each_kind(self, db_session, seeded):
        project, memo, essay = seeded
        resolver = OwnershipResolver(db_session)

        resolved = await resolver.authorize(OWNER, ProjectRef(project.id))
        assert resolved.project.id == project.id

        resolved = await resolver.authorize(OWNER, MemoRef(memo.id))
        assert resolved.memo.id == memo.id
        assert resolved.project.id == project.id

        resolved = await resolver.authorize(OWNER, EssayRef(essay.id))
        assert resolved.essay.id == essay.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", ["project", "memo", "essay"])
    async def test_stranger_is_unauthorized(self, db_session, seeded, kind):
        project, memo, essay = seeded
        ref = {
            "project": ProjectRef(project.id),
            "memo": MemoRef(memo.id),
            "essay": EssayRef(essay.id),
        }[kind]

        with pytest.raises(Unauthorized):
            await OwnershipResolver(db_session).authorize(STRANGER, ref)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ref, kind", [
        (ProjectRef(404), "project"),
        (MemoRef(404), "memo"),
        (EssayRef(404), "essay"),
    ])
    async def test_missing_resource_reports_kind(self, db_session, ref, kind):
        with pytest.raises(NotFound) as exc:
            await OwnershipResolver(db_session).authorize(OWNER, ref)
        assert exc.value.resource == kind

    @pytest.mark.asyncio
    async def test_missing_wins_over_ownership(self, db_session):
        """不存在的资源对任何用户都是 NotFound"""
        with pytest.raises(NotFound):
            await OwnershipResolver(db_session).authorize(STRANGER, MemoRef(12345))

    @pytest.mark.asyncio
    async def test_unsupported_ref(self, db_session):
        with pytest.raises(TypeError):
            await OwnershipResolver(db_session).authorize(OWNER, "project:1")
