"""Tests for the hash-guarded sync engine."""

import shutil

import pytest
from conftest import write_skill

from skillsync import sync as sync_module
from skillsync.lockfile import LockStore
from skillsync.service import SkliService
from skillsync.sync import SyncEngine
from skillsync.types import InstalledSkill, SyncStatus

REPO_A = "https://github.com/org/alpha-skills"
REPO_B = "https://github.com/org/broken-skills"
REPO_C = "https://gitlab.com/org/gamma-skills"


@pytest.fixture
def skills_root(tmp_path):
    return tmp_path / "skills"


@pytest.fixture
def lock_store(tmp_path):
    return LockStore(tmp_path / "skli.lock")


@pytest.fixture
def service(tmp_path, skills_root, fake_source):
    return SkliService(skills_root=skills_root, lock_path=tmp_path / "skli.lock", source=fake_source)


@pytest.fixture
def engine(lock_store, skills_root, fake_source):
    return SyncEngine(lock_store, fake_source, skills_root)


def make_upstream(tmp_path, name, skills):
    """Lay out ``skills/<folder>/SKILL.md`` for every (folder, body) pair."""
    upstream = tmp_path / "upstreams" / name
    for folder, body in skills.items():
        write_skill(upstream / "skills" / folder, folder, f"{folder} skill", body)
    return upstream


async def test_nothing_installed(engine):
    assert await engine.sync_all() == []


async def test_second_sync_is_a_noop(tmp_path, service, fake_source, skills_root):
    fake_source.add_repo(REPO_A, "c1", make_upstream(tmp_path, "a", {"one": "v1", "two": "v1"}))
    await service.add(REPO_A)
    assert fake_source.clones == 1

    summary = await service.sync_all()

    assert [o.status for o in summary.results] == [SyncStatus.SKIPPED, SyncStatus.SKIPPED]
    assert fake_source.clones == 1
    assert summary.updated == 0 and summary.errors == 0


async def test_upstream_change_updates_files_and_lock(tmp_path, service, fake_source, skills_root):
    upstream = make_upstream(tmp_path, "a", {"one": "v1"})
    fake_source.add_repo(REPO_A, "c1", upstream)
    await service.add(REPO_A)
    [before] = await service.lock_store.all()

    write_skill(upstream / "skills" / "one", "one", "one skill", "v2")
    (upstream / "skills" / "one" / "extra.txt").write_text("new file")
    fake_source.add_repo(REPO_A, "c2", upstream)

    summary = await service.sync_all()

    assert [o.status for o in summary.results] == [SyncStatus.UPDATED]
    assert "v2" in (skills_root / "one" / "SKILL.md").read_text()
    assert (skills_root / "one" / "extra.txt").exists()
    [after] = await service.lock_store.all()
    assert after.commit_hash == "c2"
    assert after.installed_at == before.installed_at
    assert after.updated_at > before.updated_at

    clones = fake_source.clones
    again = await service.sync_all()
    assert [o.status for o in again.results] == [SyncStatus.SKIPPED]
    assert fake_source.clones == clones


async def test_missing_directory_is_restored(tmp_path, service, fake_source, skills_root):
    fake_source.add_repo(REPO_A, "c1", make_upstream(tmp_path, "a", {"one": "v1"}))
    await service.add(REPO_A)
    shutil.rmtree(skills_root / "one")

    summary = await service.sync_all()

    assert [o.status for o in summary.results] == [SyncStatus.UPDATED]
    assert (skills_root / "one" / "SKILL.md").exists()


async def test_one_failing_repo_does_not_stop_the_others(tmp_path, service, fake_source, skills_root):
    upstream_a = make_upstream(tmp_path, "a", {"a1": "v1"})
    upstream_c = make_upstream(tmp_path, "c", {"c1": "v1"})
    fake_source.add_repo(REPO_A, "a-1", upstream_a)
    fake_source.add_repo(REPO_B, "b-1", make_upstream(tmp_path, "b", {"b1": "v1"}))
    fake_source.add_repo(REPO_C, "c-1", upstream_c)
    for repo in (REPO_A, REPO_B, REPO_C):
        await service.add(repo)

    fake_source.add_repo(REPO_A, "a-2", upstream_a)
    fake_source.add_repo(REPO_C, "c-2", upstream_c)
    fake_source.unreachable.add(REPO_B)

    summary = await service.sync_all()

    by_name = {o.skill_name: o for o in summary.results}
    assert by_name["a1"].status == SyncStatus.UPDATED
    assert by_name["c1"].status == SyncStatus.UPDATED
    assert by_name["b1"].status == SyncStatus.ERROR
    assert "error querying" in by_name["b1"].reason
    assert (summary.updated, summary.skipped, summary.errors) == (2, 0, 1)

    hashes = {s.name: s.commit_hash for s in await service.lock_store.all()}
    assert hashes == {"a1": "a-2", "b1": "b-1", "c1": "c-2"}


async def test_skill_removed_upstream(tmp_path, service, fake_source, skills_root):
    upstream = make_upstream(tmp_path, "a", {"keep": "v1", "gone": "v1"})
    fake_source.add_repo(REPO_A, "c1", upstream)
    await service.add(REPO_A)

    shutil.rmtree(upstream / "skills" / "gone")
    fake_source.add_repo(REPO_A, "c2", upstream)

    summary = await service.sync_all()

    by_name = {o.skill_name: o for o in summary.results}
    assert by_name["keep"].status == SyncStatus.UPDATED
    assert by_name["gone"].status == SyncStatus.ERROR
    assert by_name["gone"].reason == "skill no longer exists upstream"
    assert (skills_root / "gone").is_dir()
    assert (await service.lock_store.get(str(skills_root / "gone"))).commit_hash == "c1"


async def test_copy_failure_leaves_lock_untouched(tmp_path, service, fake_source, monkeypatch):
    upstream = make_upstream(tmp_path, "a", {"one": "v1"})
    fake_source.add_repo(REPO_A, "c1", upstream)
    await service.add(REPO_A)
    before = (tmp_path / "skli.lock").read_text()

    async def broken_copy(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(sync_module, "copy_tree", broken_copy)
    fake_source.add_repo(REPO_A, "c2", upstream)

    summary = await service.sync_all()

    assert summary.results[0].status == SyncStatus.ERROR
    assert "disk full" in summary.results[0].reason
    assert (tmp_path / "skli.lock").read_text() == before


async def test_working_dirs_are_removed(tmp_path, service, fake_source):
    upstream = make_upstream(tmp_path, "a", {"one": "v1"})
    fake_source.add_repo(REPO_A, "c1", upstream)
    await service.add(REPO_A)
    fake_source.add_repo(REPO_A, "c2", upstream)

    await service.sync_all()

    assert len(fake_source.working_dirs) == 2
    assert not any(d.exists() for d in fake_source.working_dirs)


async def test_entry_outside_skills_root_is_refused(tmp_path, engine, lock_store, fake_source):
    upstream = make_upstream(tmp_path, "a", {"one": "v2"})
    fake_source.add_repo(REPO_A, "c2", upstream)
    outside = tmp_path / "elsewhere" / "one"
    write_skill(outside, "one", body="v1")
    await lock_store.upsert(
        InstalledSkill(
            name="one",
            description="",
            local_path=str(outside),
            origin_repo=REPO_A,
            origin_root="skills",
            origin_relative_path="one",
            commit_hash="c1",
        )
    )

    [outcome] = await engine.sync_all()

    assert outcome.status == SyncStatus.ERROR
    assert "v1" in (outside / "SKILL.md").read_text()


async def test_concurrency_limit_of_one(tmp_path, lock_store, skills_root, fake_source):
    engine = SyncEngine(lock_store, fake_source, skills_root, max_concurrency=1)
    service = SkliService(skills_root=skills_root, lock_path=lock_store.lock_path, source=fake_source)
    for repo, name in ((REPO_A, "a"), (REPO_C, "c")):
        fake_source.add_repo(repo, f"{name}-1", make_upstream(tmp_path, name, {f"{name}1": "v1"}))
        await service.add(repo)

    outcomes = await engine.sync_all()

    assert [o.skill_name for o in outcomes] == ["a1", "c1"]
    assert all(o.status == SyncStatus.SKIPPED for o in outcomes)


async def test_skills_from_repository_root_stay_in_sync(tmp_path, service, fake_source, skills_root):
    upstream = tmp_path / "upstreams" / "root"
    write_skill(upstream / "alpha", "alpha", "at the root", "v1")
    fake_source.add_repo(REPO_A, "c1", upstream)
    await service.add(REPO_A, sub_path=".")
    [entry] = await service.lock_store.all()
    assert entry.origin_root == ""

    write_skill(upstream / "alpha", "alpha", "at the root", "v2")
    fake_source.add_repo(REPO_A, "c2", upstream)

    summary = await service.sync_all()

    assert [o.status for o in summary.results] == [SyncStatus.UPDATED]
    assert "v2" in (skills_root / "alpha" / "SKILL.md").read_text()
    assert (await service.lock_store.all())[0].commit_hash == "c2"


async def test_failed_scan_marks_whole_group(tmp_path, service, fake_source, skills_root):
    upstream_a = make_upstream(tmp_path, "a", {"a1": "v1"})
    fake_source.add_repo(REPO_A, "a-1", upstream_a)
    fake_source.add_repo(REPO_B, "b-1", make_upstream(tmp_path, "b", {"b1": "v1", "b2": "v1"}))
    await service.add(REPO_A)
    await service.add(REPO_B)

    fake_source.add_repo(REPO_A, "a-2", upstream_a)
    fake_source.add_repo(REPO_B, "b-2", fake_source.repos[REPO_B][1])
    fake_source.unclonable.add(REPO_B)

    summary = await service.sync_all()

    by_name = {o.skill_name: o for o in summary.results}
    assert by_name["a1"].status == SyncStatus.UPDATED
    for name in ("b1", "b2"):
        assert by_name[name].status == SyncStatus.ERROR
        assert by_name[name].reason.startswith("error cloning repo")
        assert (skills_root / name / "SKILL.md").exists()

    hashes = {s.name: s.commit_hash for s in await service.lock_store.all()}
    assert hashes == {"a1": "a-2", "b1": "b-1", "b2": "b-1"}
