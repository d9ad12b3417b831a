"""Pytest fixtures shared by the skli test-suite."""

import shutil
import subprocess
import tempfile
import textwrap
from pathlib import Path

import pytest

from config import Config
from skillsync.errors import CloneError, NoSkillsFoundError, RemoteQueryError
from skillsync.source import SourceAdapter, effective_sub_path, find_skills
from skillsync.types import ScanResult

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def write_skill(skill_dir: Path, name: str, description: str = "", body: str = "Do the thing.") -> Path:
    """Create ``skill_dir/SKILL.md`` with a front-matter block."""
    skill_dir.mkdir(parents=True, exist_ok=True)
    skill_file = skill_dir / "SKILL.md"
    skill_file.write_text(
        textwrap.dedent(
            f"""\
            ---
            name: {name}
            description: {description}
            ---

            {body}
            """
        )
    )
    return skill_file


@pytest.fixture
def set_config(monkeypatch):
    """Fixture to temporarily override Config values.

    Usage:
        def test_something(set_config):
            set_config(GIT_TIMEOUT=5, SYNC_MAX_CONCURRENCY=1)
    """

    def _set_config(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setattr(Config, key, value)

    return _set_config


@pytest.fixture(autouse=True)
def default_config(set_config):
    set_config(DEFAULT_SUB_PATH="skills", GIT_TIMEOUT=60, SYNC_MAX_CONCURRENCY=8)


@pytest.fixture
def git_env(tmp_path, monkeypatch):
    """Isolate git from the user's global configuration."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "skli test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "skli test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def init_repo(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    return path


def commit_all(repo: Path, message: str = "update") -> str:
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


class FakeSource(SourceAdapter):
    """Source adapter backed by plain directories instead of git remotes.

    ``repos`` maps a repository URL to ``(head_commit, upstream_dir)``. Every
    scan copies the upstream directory to a fresh working directory, like a
    real checkout would, and bumps ``clones``. Repositories in ``unreachable``
    fail the remote query; those in ``unclonable`` answer it but fail the scan.
    """

    def __init__(self):
        self.repos: dict[str, tuple[str, Path]] = {}
        self.unreachable: set[str] = set()
        self.unclonable: set[str] = set()
        self.clones = 0
        self.working_dirs: list[Path] = []

    def add_repo(self, url: str, head: str, upstream_dir: Path) -> None:
        self.repos[url] = (head, upstream_dir)

    async def remote_head(self, repo_ref):
        if repo_ref.base_url in self.unreachable or repo_ref.base_url not in self.repos:
            raise RemoteQueryError(f"error querying {repo_ref.base_url}", repo_url=repo_ref.base_url)
        return self.repos[repo_ref.base_url][0]

    async def scan(self, repo_ref, requested_sub_path=None):
        self.clones += 1
        if repo_ref.base_url in self.unclonable:
            raise CloneError(f"error fetching HEAD from {repo_ref.base_url}", repo_url=repo_ref.base_url)
        head, upstream = self.repos[repo_ref.base_url]
        working_dir = Path(tempfile.mkdtemp(prefix="skli-fake-"))
        shutil.copytree(upstream, working_dir, dirs_exist_ok=True)
        self.working_dirs.append(working_dir)

        sub_path = effective_sub_path(repo_ref, requested_sub_path)
        skills = await find_skills(working_dir / sub_path if sub_path else working_dir)
        if not skills:
            shutil.rmtree(working_dir)
            raise NoSkillsFoundError(f"no skills found in {repo_ref.base_url}", repo_url=repo_ref.base_url)
        return ScanResult(
            skills=skills,
            working_dir=working_dir,
            commit_hash=head,
            effective_sub_path=sub_path,
        )


@pytest.fixture
def fake_source():
    return FakeSource()
