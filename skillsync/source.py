"""Git-backed skill source.

A scan never clones a whole repository: it initialises an empty repo, turns
on sparse checkout for a single sub-path and fetches only the tip of the
wanted branch (depth 1). Remote hashes are probed with ``git ls-remote`` so
callers can tell whether a repository changed without fetching anything.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
from pathlib import Path

import aiofiles
import aiofiles.os

from config import Config

from .errors import (
    CloneError,
    CopyError,
    NoSkillsFoundError,
    ReadError,
    RemoteQueryError,
    UnsafePathError,
)
from .git import run_git
from .installer import folder_name, remove_tree, replace_tree
from .parser import SCAN_MAX_LINES, SKILL_FILENAME, parse_file
from .registry import safe_delete_path
from .types import InstallResult, RepoReference, ScanResult, SkillDescriptor

logger = logging.getLogger(__name__)


def clean_sub_path(sub_path: str | None) -> str:
    """Normalise a repository sub-path; ``""`` stands for the repository root."""
    value = (sub_path or "").strip().replace("\\", "/").strip("/")
    return "" if value == "." else value


def effective_sub_path(repo_ref: RepoReference, requested_sub_path: str | None = None) -> str:
    """Requested sub-path, else the one embedded in the URL, else the default.

    A requested ``"."`` selects the repository root and skips the fallbacks.
    """
    for candidate in (requested_sub_path, repo_ref.sub_path, Config.DEFAULT_SUB_PATH):
        if candidate and candidate.strip():
            return clean_sub_path(candidate)
    return ""


def skill_source_dir(working_dir: Path, sub_path: str, relative_path: str) -> Path:
    root = Path(working_dir) / sub_path if sub_path else Path(working_dir)
    return root / relative_path if relative_path else root


async def find_skills(base_dir: Path, max_lines: int = SCAN_MAX_LINES) -> list[SkillDescriptor]:
    """Recursively collect every SKILL.md under ``base_dir``.

    Descriptors that cannot be read or declare no name are ignored.
    """
    base_dir = Path(base_dir)

    def _collect() -> list[Path]:
        if not base_dir.is_dir():
            return []
        return sorted(
            p
            for p in base_dir.rglob(SKILL_FILENAME)
            if p.is_file() and ".git" not in p.relative_to(base_dir).parts
        )

    skills: list[SkillDescriptor] = []
    for skill_file in await asyncio.to_thread(_collect):
        try:
            meta = await parse_file(skill_file, max_lines)
        except ReadError as e:
            logger.warning("Ignoring unreadable descriptor %s: %s", skill_file, e)
            continue
        if not meta.name:
            continue
        rel = skill_file.parent.relative_to(base_dir).as_posix()
        skills.append(
            SkillDescriptor(
                name=meta.name,
                description=meta.description,
                relative_path="" if rel == "." else rel,
            )
        )
    return skills


def parse_ls_remote(output: str, branch: str) -> str | None:
    """Pick the commit for ``branch`` out of ``git ls-remote`` output.

    ``ls-remote`` matches patterns by suffix, so ``main`` also lists
    ``refs/heads/feature/main``; only exact refs count.
    """
    refs: dict[str, str] = {}
    for line in output.splitlines():
        parts = line.strip().split()
        if len(parts) >= 2:
            refs.setdefault(parts[1], parts[0])

    for ref in (branch, f"refs/heads/{branch}", f"refs/tags/{branch}^{{}}", f"refs/tags/{branch}"):
        if ref in refs:
            return refs[ref]
    return None


class SourceAdapter:
    """Scan, probe and install skills from remote git repositories."""

    async def scan(self, repo_ref: RepoReference, requested_sub_path: str | None = None) -> ScanResult:
        """Sparse, shallow checkout of one sub-path followed by skill discovery.

        The returned ``working_dir`` belongs to the caller, who must remove it.
        On failure it has already been removed.

        Raises:
            CloneError: If any git step fails.
            NoSkillsFoundError: If the checkout holds no descriptors.
        """
        url = repo_ref.base_url
        branch = repo_ref.branch or "HEAD"
        sub_path = effective_sub_path(repo_ref, requested_sub_path)
        working_dir = Path(await asyncio.to_thread(tempfile.mkdtemp, prefix="skli-repo-"))
        logger.info("Scanning %s (branch=%s, path=%s) in %s", url, branch, sub_path or "/", working_dir)

        try:
            await run_git(working_dir, "init", message="error initialising repository", repo_url=url)
            await run_git(
                working_dir, "remote", "add", "origin", url, message="error adding remote", repo_url=url
            )
            await run_git(
                working_dir,
                "config",
                "core.sparseCheckout",
                "true",
                message="error configuring sparse checkout",
                repo_url=url,
            )
            await self._write_sparse_patterns(working_dir, sub_path, url)
            await run_git(
                working_dir,
                "fetch",
                "--depth",
                "1",
                "origin",
                branch,
                message=f"error fetching {branch} from {url}",
                repo_url=url,
            )
            await run_git(
                working_dir, "checkout", "FETCH_HEAD", message="error checking out", repo_url=url
            )
            commit_hash = (
                await run_git(
                    working_dir, "rev-parse", "HEAD", message="error resolving commit", repo_url=url
                )
            ).strip()

            skills = await find_skills(skill_source_dir(working_dir, sub_path, ""))
            if not skills:
                raise NoSkillsFoundError(
                    f"no skills (SKILL.md files) found under '{sub_path or '/'}' in {url}",
                    repo_url=url,
                )
        except Exception:
            await remove_tree(working_dir)
            raise

        logger.info("Found %d skill(s) in %s at %s", len(skills), url, commit_hash[:12])
        return ScanResult(
            skills=skills,
            working_dir=working_dir,
            commit_hash=commit_hash,
            effective_sub_path=sub_path,
        )

    async def _write_sparse_patterns(self, working_dir: Path, sub_path: str, url: str) -> None:
        sparse_file = working_dir / ".git" / "info" / "sparse-checkout"
        pattern = f"{sub_path}/\n" if sub_path else "/*\n"
        try:
            await aiofiles.os.makedirs(sparse_file.parent, exist_ok=True)
            async with aiofiles.open(sparse_file, "w", encoding="utf-8") as handle:
                await handle.write(pattern)
        except OSError as e:
            raise CloneError("error writing sparse-checkout patterns", repo_url=url, output=str(e)) from e

    async def remote_head(self, repo_ref: RepoReference) -> str:
        """Commit hash of the remote branch, without cloning.

        Raises:
            RemoteQueryError: If the remote or the ref is unreachable.
        """
        branch = repo_ref.branch or "HEAD"
        output = await run_git(
            None,
            "ls-remote",
            repo_ref.base_url,
            branch,
            error_cls=RemoteQueryError,
            message=f"error querying {repo_ref.base_url}",
            repo_url=repo_ref.base_url,
        )
        commit = parse_ls_remote(output, branch)
        if not commit:
            raise RemoteQueryError(
                f"ref '{branch}' not found on {repo_ref.base_url}", repo_url=repo_ref.base_url
            )
        return commit

    async def install(
        self,
        working_dir: Path,
        sub_path: str,
        destination_root: Path,
        selected: list[SkillDescriptor],
    ) -> list[InstallResult]:
        """Copy each selected skill into ``destination_root/<folder_name>``.

        Existing folders of the same name are replaced. A failing skill gets
        a CopyError in its result; skills before it stay installed and the
        ones after it are still attempted.
        """
        destination_root = Path(destination_root)
        await aiofiles.os.makedirs(destination_root, exist_ok=True)

        results: list[InstallResult] = []
        for skill in selected:
            name = folder_name(skill)
            destination = destination_root / name
            if not name:
                results.append(
                    InstallResult(
                        skill,
                        destination,
                        CopyError(f"cannot derive a folder name for skill '{skill.name}'", skill=skill.name),
                    )
                )
                continue

            source = skill_source_dir(working_dir, sub_path, skill.relative_path)
            try:
                safe_delete_path(destination, destination_root)
            except UnsafePathError as e:
                results.append(InstallResult(skill, destination, CopyError(str(e), skill=skill.name)))
                continue

            try:
                await replace_tree(source, destination)
            except OSError as e:
                logger.warning("Copying %s to %s failed: %s", skill.name, destination, e)
                results.append(
                    InstallResult(
                        skill,
                        destination,
                        CopyError(f"error copying skill {skill.name}", skill=skill.name, output=str(e)),
                    )
                )
                continue

            logger.info("Installed %s into %s", skill.name, destination)
            results.append(InstallResult(skill, destination))
        return results
