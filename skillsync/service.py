"""Use cases behind the command line: add, list, remove, sync and upload."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from config import Config

from .errors import NotFoundError
from .installer import folder_name, format_candidate_list, remove_tree
from .lockfile import LockStore
from .publish import PublishFlow
from .registry import DEFAULT_SKILLS_ROOT, SkillRegistry
from .source import SourceAdapter
from .sync import SyncEngine
from .types import InstalledSkill, InstallResult, SkillDescriptor, SyncOutcome, SyncStatus
from .urls import parse_git_url

logger = logging.getLogger(__name__)


@dataclass
class SyncSummary:
    results: list[SyncOutcome] = field(default_factory=list)
    updated: int = 0
    skipped: int = 0
    errors: int = 0


@dataclass(frozen=True)
class UploadResult:
    skill: InstalledSkill
    pr_url: str


class SkliService:
    """Wires the source adapter, lock store, registry, sync engine and publisher."""

    def __init__(
        self,
        skills_root: str | Path | None = None,
        lock_path: str | Path | None = None,
        source: SourceAdapter | None = None,
        publisher: PublishFlow | None = None,
    ):
        self.skills_root = Path(skills_root or Config.LOCAL_PATH or DEFAULT_SKILLS_ROOT)
        self.lock_store = LockStore(lock_path)
        self.source = source or SourceAdapter()
        self.publisher = publisher or PublishFlow()
        self.registry = SkillRegistry(self.lock_store, self.skills_root)
        self.engine = SyncEngine(self.lock_store, self.source, self.skills_root)

    async def add(
        self,
        url: str,
        names: list[str] | None = None,
        sub_path: str | None = None,
        destination: str | Path | None = None,
    ) -> list[InstallResult]:
        """Install skills from ``url`` and record them in the lock file.

        Args:
            url: Clone or browse URL of the source repository
            names: Skill names or folder names to install (default: all)
            sub_path: Directory inside the repository holding the skills
            destination: Install directory (default: the skills root)

        Returns:
            One InstallResult per selected skill
        """
        ref = parse_git_url(url)
        scan = await self.source.scan(ref, sub_path)
        try:
            selected = _select(scan.skills, names)
            target = Path(destination or self.skills_root)
            results = await self.source.install(
                scan.working_dir, scan.effective_sub_path, target, selected
            )
            for result in results:
                if not result.ok:
                    continue
                await self.lock_store.upsert(
                    InstalledSkill(
                        name=result.skill.name,
                        description=result.skill.description,
                        local_path=str(result.destination),
                        origin_repo=url.strip(),
                        origin_root=scan.effective_sub_path,
                        origin_relative_path=result.skill.relative_path,
                        commit_hash=scan.commit_hash,
                    )
                )
            return results
        finally:
            await remove_tree(scan.working_dir)

    async def list_skills(self) -> list[InstalledSkill]:
        return await self.registry.collect_all()

    async def remove_by_name(self, name: str) -> InstalledSkill:
        return await self.registry.delete_by_name(name)

    async def sync_all(self) -> SyncSummary:
        summary = SyncSummary(results=await self.engine.sync_all())
        for outcome in summary.results:
            if outcome.status == SyncStatus.ERROR:
                summary.errors += 1
            elif outcome.status == SyncStatus.UPDATED:
                summary.updated += 1
            else:
                summary.skipped += 1
        return summary

    async def upload_direct(self, target_repo: str, local_skill_path: str) -> UploadResult:
        skill = await self.registry.prepare_local_for_upload(local_skill_path)
        pr_url = await self.publisher.upload(skill, target_repo)
        return UploadResult(skill=skill, pr_url=pr_url)


def _select(skills: list[SkillDescriptor], names: list[str] | None) -> list[SkillDescriptor]:
    if not names:
        return list(skills)

    selected: list[SkillDescriptor] = []
    for name in names:
        needle = name.strip().lower()
        matches = [s for s in skills if s.name.lower() == needle or folder_name(s).lower() == needle]
        if not matches:
            available = format_candidate_list(s.name for s in skills)
            raise NotFoundError(f"skill '{name}' not found in repository. Available:\n{available}", skill=name)
        for match in matches:
            if match not in selected:
                selected.append(match)
    return selected
