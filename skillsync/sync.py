"""Synchronization of installed skills with their origin repositories.

Skills are grouped by origin repository and each repository is handled by
its own task. A task first asks the remote for its head commit; when every
skill of the group already sits at that commit (and is still on disk) the
group is skipped without cloning anything. Otherwise the repository is
scanned once and each skill is refreshed from that single checkout.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import replace
from pathlib import Path

import aiofiles.os

from config import Config

from .errors import SkliError
from .installer import copy_tree, remove_tree
from .lockfile import LockStore
from .registry import DEFAULT_SKILLS_ROOT, safe_delete_path
from .source import SourceAdapter, clean_sub_path, skill_source_dir
from .types import InstalledSkill, RepoReference, ScanResult, SkillDescriptor, SyncOutcome
from .urls import parse_git_url

logger = logging.getLogger(__name__)


class SyncEngine:
    """Hash-guarded synchronization of every skill in the lock file."""

    def __init__(
        self,
        lock_store: LockStore | None = None,
        source: SourceAdapter | None = None,
        skills_root: str | Path | None = None,
        max_concurrency: int | None = None,
    ):
        """Initialize the engine.

        Args:
            lock_store: Lock file to read and update (default: Config.LOCK_FILE)
            source: Git source adapter
            skills_root: Directory every synced skill must live under
            max_concurrency: Repositories synced at once (default:
                Config.SYNC_MAX_CONCURRENCY, 0 or less means unbounded)
        """
        self.lock_store = lock_store or LockStore()
        self.source = source or SourceAdapter()
        self.skills_root = Path(skills_root or Config.LOCAL_PATH or DEFAULT_SKILLS_ROOT)
        self.max_concurrency = (
            Config.SYNC_MAX_CONCURRENCY if max_concurrency is None else max_concurrency
        )

    async def sync_all(self) -> list[SyncOutcome]:
        """Sync every origin repository concurrently.

        A failure in one repository only turns that repository's skills into
        error outcomes; the others carry on.

        Returns:
            One outcome per skill, grouped by repository in lock file order
        """
        grouped = {
            repo: skills for repo, skills in (await self.lock_store.group_by_origin_repo()).items() if repo
        }
        if not grouped:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency > 0 else None

        async def _run(repo_url: str, skills: list[InstalledSkill]) -> list[SyncOutcome]:
            async with semaphore or contextlib.nullcontext():
                return await self.sync_repo(repo_url, skills)

        logger.info("Syncing %d repositories", len(grouped))
        gathered = await asyncio.gather(
            *(_run(repo, skills) for repo, skills in grouped.items()),
            return_exceptions=True,
        )

        outcomes: list[SyncOutcome] = []
        for (repo_url, skills), result in zip(grouped.items(), gathered):
            if isinstance(result, BaseException):
                logger.warning("Sync of %s crashed: %s", repo_url, result)
                outcomes.extend(SyncOutcome.error(s, f"unexpected error: {result}") for s in skills)
            else:
                outcomes.extend(result)
        return outcomes

    async def sync_repo(self, repo_url: str, skills: list[InstalledSkill]) -> list[SyncOutcome]:
        """Sync every skill installed from ``repo_url``."""
        ref = parse_git_url(repo_url)

        try:
            head = await self.source.remote_head(ref)
        except SkliError as e:
            logger.warning("Remote query for %s failed: %s", repo_url, e)
            return [SyncOutcome.error(s, f"error querying remote: {e}") for s in skills]

        if await self._all_current(skills, head):
            logger.info("%s is up to date at %s, skipping clone", repo_url, head[:12])
            return [SyncOutcome.skipped(s) for s in skills]

        # Skills of one repository may come from different sub-paths. The
        # recorded root is authoritative; "" is the repository root.
        by_root: dict[str, list[InstalledSkill]] = {}
        for skill in skills:
            root = clean_sub_path(skill.origin_root)
            by_root.setdefault(root, []).append(skill)

        outcomes: dict[str, SyncOutcome] = {}
        for root, root_skills in by_root.items():
            for outcome in await self._sync_root(ref, root, root_skills):
                outcomes[outcome.local_path] = outcome
        return [outcomes[s.local_path] for s in skills]

    async def _all_current(self, skills: list[InstalledSkill], head: str) -> bool:
        for skill in skills:
            if skill.commit_hash != head:
                return False
            if not await aiofiles.os.path.isdir(skill.local_path):
                return False
        return True

    async def _sync_root(
        self, ref: RepoReference, root: str, skills: list[InstalledSkill]
    ) -> list[SyncOutcome]:
        try:
            scan = await self.source.scan(ref, root or ".")
        except SkliError as e:
            logger.warning("Scan of %s failed: %s", ref.base_url, e)
            return [SyncOutcome.error(s, f"error cloning repo: {e}") for s in skills]

        try:
            remote = {clean_sub_path(d.relative_path): d for d in scan.skills}
            return [await self._sync_skill(skill, remote, scan) for skill in skills]
        finally:
            await remove_tree(scan.working_dir)

    async def _sync_skill(
        self,
        skill: InstalledSkill,
        remote: dict[str, SkillDescriptor],
        scan: ScanResult,
    ) -> SyncOutcome:
        descriptor = remote.get(clean_sub_path(skill.origin_relative_path))
        if descriptor is None:
            return SyncOutcome.error(skill, "skill no longer exists upstream")

        if skill.commit_hash == scan.commit_hash and await aiofiles.os.path.isdir(skill.local_path):
            return SyncOutcome.skipped(skill)

        try:
            target = safe_delete_path(skill.local_path, self.skills_root)
        except SkliError as e:
            return SyncOutcome.error(skill, str(e))

        source_dir = skill_source_dir(scan.working_dir, scan.effective_sub_path, descriptor.relative_path)
        try:
            await remove_tree(target)
            await copy_tree(source_dir, target)
        except OSError as e:
            logger.warning("Copying %s failed: %s", skill.name, e)
            return SyncOutcome.error(skill, f"error copying: {e}")

        try:
            await self.lock_store.upsert(
                replace(
                    skill,
                    name=descriptor.name,
                    description=descriptor.description,
                    commit_hash=scan.commit_hash,
                )
            )
        except (OSError, SkliError) as e:
            return SyncOutcome.error(skill, f"files updated but skli.lock could not be written: {e}")

        logger.info("Updated %s to %s", skill.name, scan.commit_hash[:12])
        return SyncOutcome.updated(skill)
