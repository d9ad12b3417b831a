"""Publishing local skill changes back to a repository as a PR/MR."""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

from config import Config

from .errors import CloneError, CopyError, NoChangesError, SkliError
from .git import run_command, run_git
from .installer import remove_tree, replace_tree, sanitize_name
from .registry import safe_delete_path
from .source import clean_sub_path, find_skills
from .types import InstalledSkill
from .urls import (
    PROVIDER_GITHUB,
    PROVIDER_GITLAB,
    build_pr_url,
    detect_provider,
    parse_git_url,
)

logger = logging.getLogger(__name__)

FALLBACK_DEFAULT_BRANCH = "main"


def branch_name_for(skill_name: str, now: datetime | None = None) -> str:
    timestamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return f"feat/update-{sanitize_name(skill_name) or 'skill'}-{timestamp}"


class PublishFlow:
    """Clone, branch, copy, commit, push and open a PR/MR for one skill."""

    async def upload(self, skill: InstalledSkill, target_repo_url: str) -> str:
        """Publish ``skill`` to ``target_repo_url``.

        Opening the PR/MR is best effort: when the provider CLI is missing or
        fails, a URL where it can be opened by hand is returned instead.

        Returns:
            URL of the created PR/MR, or the fallback URL

        Raises:
            CloneError: If cloning, branching, committing or pushing fails.
            CopyError: If the skill files cannot be copied into the clone.
            NoChangesError: If the clone already holds identical content.
        """
        repo_dir = await self.clone_for_push(target_repo_url)
        try:
            branch = await self.prepare_branch(repo_dir, skill.name)

            repo_skill_path = await self.find_skill_in_repo(repo_dir, skill.name)
            if repo_skill_path is None:
                folder = Path(skill.local_path).name
                repo_skill_path = "/".join(p for p in (clean_sub_path(Config.DEFAULT_SUB_PATH), folder) if p)
                logger.info("%s is new to %s, adding it at %s", skill.name, target_repo_url, repo_skill_path)
            else:
                logger.info("Updating %s in place at %s", skill.name, repo_skill_path)

            await self.copy_skill_files(repo_dir, Path(skill.local_path), repo_skill_path)
            return await self.push_and_create_pr(
                repo_dir, target_repo_url, branch, skill.name, skill.description
            )
        finally:
            await remove_tree(repo_dir)

    async def clone_for_push(self, remote_url: str) -> Path:
        """Full clone of ``remote_url`` into a fresh temporary directory."""
        repo_dir = Path(await asyncio.to_thread(tempfile.mkdtemp, prefix="skli-pr-"))
        clone_url = parse_git_url(remote_url).base_url
        try:
            await run_git(
                repo_dir, "clone", clone_url, ".", message=f"error cloning {clone_url}", repo_url=clone_url
            )
        except SkliError:
            await remove_tree(repo_dir)
            raise
        return repo_dir

    async def prepare_branch(self, repo_dir: Path, skill_name: str) -> str:
        branch = branch_name_for(skill_name)
        await run_git(repo_dir, "checkout", "-b", branch, message=f"error creating branch {branch}")
        return branch

    async def find_skill_in_repo(self, repo_dir: Path, skill_name: str) -> str | None:
        """Path (relative to the repo) of an existing skill with this name."""
        for descriptor in await find_skills(repo_dir):
            # A descriptor at the repository root cannot be replaced wholesale.
            if descriptor.name == skill_name and descriptor.relative_path:
                return descriptor.relative_path
        return None

    async def copy_skill_files(self, repo_dir: Path, local_skill_path: Path, repo_skill_path: str) -> None:
        destination = safe_delete_path(Path(repo_dir) / repo_skill_path, repo_dir)
        try:
            await replace_tree(local_skill_path, destination)
        except OSError as e:
            raise CopyError(
                f"error copying {local_skill_path} into {repo_skill_path}", output=str(e)
            ) from e

    async def default_branch(self, repo_dir: Path) -> str:
        result = await run_command(
            ["git", "symbolic-ref", "--short", "refs/remotes/origin/HEAD"], cwd=repo_dir
        )
        ref = result.output.strip() if result.ok else ""
        if not ref:
            return FALLBACK_DEFAULT_BRANCH
        return ref.removeprefix("origin/") or FALLBACK_DEFAULT_BRANCH

    async def push_and_create_pr(
        self,
        repo_dir: Path,
        remote_url: str,
        branch: str,
        skill_name: str,
        description: str,
    ) -> str:
        await run_git(repo_dir, "add", ".", message="git add failed", repo_url=remote_url)

        diff = await run_command(["git", "diff", "--staged", "--quiet"], cwd=repo_dir)
        if diff.ok:
            raise NoChangesError(
                "no changes to upload (local content is identical to the remote)",
                skill=skill_name,
                repo_url=remote_url,
            )
        if diff.returncode != 1:
            raise CloneError("git diff failed", repo_url=remote_url, output=diff.output)

        await run_git(
            repo_dir,
            "commit",
            "-m",
            f"feat({skill_name}): update skill content",
            message="git commit failed",
            repo_url=remote_url,
        )
        await run_git(repo_dir, "push", "origin", branch, message="git push failed", repo_url=remote_url)

        title = f"Update skill: {skill_name}"
        body = f"This PR updates the skill '{skill_name}'.\n\nAutomatically generated by skli.\n\n{description}"
        target_branch = await self.default_branch(repo_dir)
        provider = detect_provider(remote_url)

        pr_url = await self._create_with_cli(provider, repo_dir, branch, target_branch, title, body)
        if pr_url:
            return pr_url
        return build_pr_url(provider, remote_url, branch, target_branch, title)

    async def _create_with_cli(
        self,
        provider: str,
        repo_dir: Path,
        branch: str,
        target_branch: str,
        title: str,
        body: str,
    ) -> str | None:
        if provider == PROVIDER_GITHUB and shutil.which("gh"):
            args = ["gh", "pr", "create", "--title", title, "--body", body]
            args += ["--head", branch, "--base", target_branch]
        elif provider == PROVIDER_GITLAB and shutil.which("glab"):
            args = ["glab", "mr", "create", "--title", title, "--description", body]
            args += ["--source-branch", branch, "--target-branch", target_branch, "--yes"]
        else:
            return None

        result = await run_command(args, cwd=repo_dir)
        if not result.ok:
            logger.warning("%s could not open the PR/MR: %s", args[0], result.output.strip())
            return None
        lines = [line for line in result.output.strip().splitlines() if line.strip()]
        return lines[-1].strip() if lines else None
