"""Tests for the use-case layer behind the CLI."""

import pytest
from conftest import write_skill

from skillsync.errors import NoSkillsFoundError, NotFoundError
from skillsync.service import SkliService

REPO = "https://github.com/org/skills/tree/main/catalog"


@pytest.fixture
def skills_root(tmp_path):
    return tmp_path / "skills"


@pytest.fixture
def upstream(tmp_path):
    upstream = tmp_path / "upstream"
    write_skill(upstream / "catalog" / "alpha", "alpha", "first")
    write_skill(upstream / "catalog" / "group" / "beta", "Beta Tool", "second")
    return upstream


@pytest.fixture
def service(tmp_path, skills_root, fake_source, upstream):
    fake_source.add_repo("https://github.com/org/skills", "abc123", upstream)
    return SkliService(skills_root=skills_root, lock_path=tmp_path / "skli.lock", source=fake_source)


class TestAdd:
    async def test_add_all(self, service, skills_root):
        results = await service.add(REPO)

        assert [r.ok for r in results] == [True, True]
        assert (skills_root / "alpha" / "SKILL.md").exists()
        assert (skills_root / "beta" / "SKILL.md").exists()

        [alpha, beta] = await service.lock_store.all()
        assert alpha.origin_repo == REPO
        assert alpha.origin_root == "catalog"
        assert alpha.origin_relative_path == "alpha"
        assert alpha.commit_hash == "abc123"
        assert beta.name == "Beta Tool"
        assert beta.origin_relative_path == "group/beta"

    async def test_add_selected_by_name_or_folder(self, service, skills_root):
        results = await service.add(REPO, names=["beta"])

        assert [r.skill.name for r in results] == ["Beta Tool"]
        assert not (skills_root / "alpha").exists()

    async def test_add_unknown_name_installs_nothing(self, service, skills_root, fake_source):
        with pytest.raises(NotFoundError) as exc_info:
            await service.add(REPO, names=["ghost"])

        assert "alpha" in str(exc_info.value)
        assert not skills_root.exists()
        assert await service.lock_store.all() == []
        assert not fake_source.working_dirs[0].exists()

    async def test_add_to_custom_destination(self, service, tmp_path):
        results = await service.add(REPO, names=["alpha"], destination=tmp_path / "elsewhere")

        assert results[0].destination == tmp_path / "elsewhere" / "alpha"
        [entry] = await service.lock_store.all()
        assert entry.local_path == str(tmp_path / "elsewhere" / "alpha")

    async def test_add_twice_keeps_one_entry_per_path(self, service):
        await service.add(REPO)
        await service.add(REPO, names=["alpha"])

        assert len(await service.lock_store.all()) == 2

    async def test_add_empty_sub_path(self, service, tmp_path):
        (tmp_path / "upstream" / "nothing").mkdir()

        with pytest.raises(NoSkillsFoundError):
            await service.add("https://github.com/org/skills", sub_path="nothing")


async def test_list_and_remove(service, skills_root):
    await service.add(REPO)
    write_skill(skills_root / "handmade", "handmade")

    names = [s.name for s in await service.list_skills()]
    assert names == ["alpha", "Beta Tool", "handmade"]

    removed = await service.remove_by_name("beta tool")
    assert removed.local_path == str(skills_root / "beta")
    assert [s.name for s in await service.list_skills()] == ["alpha", "handmade"]


async def test_upload_direct_uses_publisher(tmp_path, skills_root, fake_source):
    calls = []

    class FakePublisher:
        async def upload(self, skill, target_repo_url):
            calls.append((skill.name, target_repo_url))
            return "https://github.com/org/skills/pull/1"

    write_skill(tmp_path / "draft", "draft-skill")
    service = SkliService(
        skills_root=skills_root,
        lock_path=tmp_path / "skli.lock",
        source=fake_source,
        publisher=FakePublisher(),
    )

    result = await service.upload_direct("https://github.com/org/skills", str(tmp_path / "draft"))

    assert result.pr_url == "https://github.com/org/skills/pull/1"
    assert result.skill.name == "draft-skill"
    assert calls == [("draft-skill", "https://github.com/org/skills")]
