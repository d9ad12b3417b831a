"""Lock file persistence.

The lock file (``skli.lock`` by default) is a human-readable YAML document
holding every installed skill and where it came from. It is never patched:
each mutation regenerates the whole file, writing to a temporary file first
and moving it over the old one.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import aiofiles
import aiofiles.os
import yaml

from config import Config

from .errors import ReadError
from .types import InstalledSkill, Registry

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _key(local_path: str) -> str:
    return os.path.normpath(local_path) if local_path else local_path


class LockStore:
    """Registry of installed skills keyed by local path.

    All mutations go through one ``asyncio.Lock`` so concurrent sync tasks
    never interleave their rewrites of the file.
    """

    def __init__(self, lock_path: str | Path | None = None):
        """Initialize the store.

        Args:
            lock_path: Path to the lock file (default: Config.LOCK_FILE)
        """
        self.lock_path = Path(lock_path or Config.LOCK_FILE)
        self._write_lock = asyncio.Lock()

    async def load(self) -> Registry:
        """Read the lock file. A missing file is an empty registry."""
        if not await aiofiles.os.path.exists(self.lock_path):
            return Registry()
        try:
            async with aiofiles.open(self.lock_path, encoding="utf-8") as f:
                content = await f.read()
            data = yaml.safe_load(content)
        except (OSError, yaml.YAMLError) as e:
            raise ReadError(f"could not read {self.lock_path}", output=str(e)) from e
        if data is not None and not isinstance(data, dict):
            raise ReadError(f"{self.lock_path} is not a valid lock file")
        try:
            return Registry.from_dict(data)
        except ValueError as e:
            raise ReadError(f"{self.lock_path} holds an invalid timestamp", output=str(e)) from e

    async def save(self, registry: Registry) -> None:
        async with self._write_lock:
            await self._write(registry)

    async def _write(self, registry: Registry) -> None:
        registry.last_updated = _now()
        content = yaml.dump(
            registry.to_dict(),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )
        await aiofiles.os.makedirs(self.lock_path.parent, exist_ok=True)
        tmp_path = f"{self.lock_path}.tmp"
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(content)
        await asyncio.to_thread(os.replace, tmp_path, self.lock_path)
        logger.debug("Wrote %d skill(s) to %s", len(registry.skills), self.lock_path)

    async def upsert(self, skill: InstalledSkill) -> InstalledSkill:
        """Insert or replace the entry with the same ``local_path``.

        ``installed_at`` survives replacement; ``updated_at`` always moves
        forward.

        Returns:
            The entry as stored
        """
        async with self._write_lock:
            registry = await self.load()
            now = _now()
            key = _key(skill.local_path)

            for idx, existing in enumerate(registry.skills):
                if _key(existing.local_path) != key:
                    continue
                updated_at = now
                if existing.updated_at and updated_at <= existing.updated_at:
                    updated_at = existing.updated_at + timedelta(microseconds=1)
                stored = replace(
                    skill,
                    installed_at=existing.installed_at or now,
                    updated_at=updated_at,
                )
                registry.skills[idx] = stored
                break
            else:
                stored = replace(skill, installed_at=now, updated_at=now)
                registry.skills.append(stored)

            await self._write(registry)
            return stored

    async def delete(self, local_path: str) -> None:
        """Remove the entry for ``local_path``; a missing entry is a no-op."""
        async with self._write_lock:
            registry = await self.load()
            key = _key(local_path)
            remaining = [s for s in registry.skills if _key(s.local_path) != key]
            if len(remaining) == len(registry.skills):
                return
            registry.skills = remaining
            await self._write(registry)

    async def get(self, local_path: str) -> InstalledSkill | None:
        key = _key(local_path)
        for skill in (await self.load()).skills:
            if _key(skill.local_path) == key:
                return skill
        return None

    async def all(self) -> list[InstalledSkill]:
        return list((await self.load()).skills)

    async def group_by_origin_repo(self) -> dict[str, list[InstalledSkill]]:
        grouped: dict[str, list[InstalledSkill]] = {}
        for skill in (await self.load()).skills:
            grouped.setdefault(skill.origin_repo, []).append(skill)
        return grouped
