"""Installed-skill lookup and safe removal."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import aiofiles.os

from config import Config

from .errors import AmbiguousNameError, NotFoundError, ReadError, SkliError, UnsafePathError
from .installer import remove_tree
from .lockfile import LockStore
from .parser import DEFAULT_MAX_LINES, SKILL_FILENAME, parse_dir
from .types import InstalledSkill

logger = logging.getLogger(__name__)

DEFAULT_SKILLS_ROOT = "skills"
UNMANAGED_DESCRIPTION = "Local skill (unmanaged)"


def safe_delete_path(target: str | Path, skills_root: str | Path | None = None) -> Path:
    """Check that ``target`` lies strictly inside ``skills_root``.

    Every deletion in the engine goes through here first.

    Returns:
        The absolute target path

    Raises:
        UnsafePathError: If the target is empty, the filesystem root, the
            skills root itself, or anywhere outside it.
    """
    raw = str(target).strip() if target is not None else ""
    cleaned = os.path.normpath(raw) if raw else ""
    if not cleaned or cleaned == "." or cleaned == os.sep:
        raise UnsafePathError(f"unsafe path to delete: '{raw}'")

    root = str(skills_root).strip() if skills_root else ""
    abs_root = os.path.abspath(root or DEFAULT_SKILLS_ROOT)
    abs_target = os.path.abspath(cleaned)

    try:
        rel = os.path.relpath(abs_target, abs_root)
    except ValueError as e:
        raise UnsafePathError(f"path outside skills root: {raw}") from e
    if rel in ("", ".", "..") or rel.startswith(".." + os.sep):
        raise UnsafePathError(f"path outside skills root: {raw}")
    return Path(abs_target)


def _same_path(a: str, b: str) -> bool:
    return os.path.abspath(a) == os.path.abspath(b)


class SkillRegistry:
    """Union of lock file entries and unmanaged skills found on disk."""

    def __init__(self, lock_store: LockStore | None = None, skills_root: str | Path | None = None):
        self.lock_store = lock_store or LockStore()
        self.skills_root = Path(skills_root or Config.LOCAL_PATH or DEFAULT_SKILLS_ROOT)

    async def collect_all(self) -> list[InstalledSkill]:
        managed = await self.lock_store.all()
        return managed + await self.scan_unmanaged(managed=managed)

    async def scan_unmanaged(
        self,
        skills_root: str | Path | None = None,
        managed: list[InstalledSkill] | None = None,
    ) -> list[InstalledSkill]:
        """Skills on disk that the lock file does not know about."""
        root = Path(skills_root or self.skills_root)
        if managed is None:
            managed = await self.lock_store.all()
        known = {os.path.abspath(s.local_path) for s in managed if s.local_path}

        def _collect() -> list[Path]:
            if not root.is_dir():
                return []
            found = []
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames[:] = sorted(d for d in dirnames if d != ".git")
                if SKILL_FILENAME not in filenames:
                    continue
                skill_dir = Path(dirpath)
                if _same_path(str(skill_dir), str(root)):
                    continue
                if os.path.abspath(skill_dir) in known:
                    continue
                found.append(skill_dir)
            return found

        return [
            InstalledSkill(
                name=skill_dir.name,
                description=UNMANAGED_DESCRIPTION,
                local_path=str(skill_dir),
            )
            for skill_dir in await asyncio.to_thread(_collect)
        ]

    async def resolve_by_name(self, name: str) -> InstalledSkill:
        """Find the single skill whose name or folder matches ``name``.

        Raises:
            NotFoundError: If nothing matches.
            AmbiguousNameError: If more than one skill matches.
        """
        needle = name.strip().lower()
        if not needle:
            raise NotFoundError("empty skill name")

        matches = [
            skill
            for skill in await self.collect_all()
            if skill.name.lower() == needle or Path(skill.local_path).name.lower() == needle
        ]
        if not matches:
            raise NotFoundError(f"skill not found: {name}", skill=name)
        if len(matches) > 1:
            paths = [m.local_path for m in matches]
            raise AmbiguousNameError(
                f"ambiguous name '{name}'. Matches: {', '.join(paths)}", paths, skill=name
            )
        return matches[0]

    async def delete(self, skill: InstalledSkill) -> None:
        """Remove the skill directory, then its lock file entry.

        The two steps are not atomic: if the second fails the lock file keeps
        an entry whose directory is gone, which the next sync treats as stale.
        """
        target = safe_delete_path(skill.local_path, self.skills_root)
        try:
            await remove_tree(target)
        except OSError as e:
            raise SkliError(f"error deleting '{skill.name}'", skill=skill.name, output=str(e)) from e
        await self.lock_store.delete(skill.local_path)
        logger.info("Deleted %s (%s)", skill.name, skill.local_path)

    async def delete_by_name(self, name: str) -> InstalledSkill:
        skill = await self.resolve_by_name(name)
        await self.delete(skill)
        return skill

    async def prepare_local_for_upload(self, local_skill_path: str | Path) -> InstalledSkill:
        """Describe a local skill directory so it can be published."""
        raw = str(local_skill_path).strip()
        if not raw:
            raise NotFoundError("local skill path is required")
        path = Path(raw).expanduser().resolve()
        if not await aiofiles.os.path.isdir(path):
            raise NotFoundError(f"invalid path: {path}")

        try:
            meta = await parse_dir(path, DEFAULT_MAX_LINES)
        except ReadError as e:
            raise ReadError(f"could not read {SKILL_FILENAME} in {path}", output=e.output) from e

        return InstalledSkill(name=meta.name, description=meta.description, local_path=str(path))
