"""Filesystem helpers for copying and removing skill trees."""

from __future__ import annotations

import asyncio
import os
import re
import shutil
from pathlib import Path, PurePosixPath
from typing import Iterable

import aiofiles
import aiofiles.os

from .types import SkillDescriptor

_UNSAFE_NAME_RE = re.compile(r"[^a-z0-9-]")
_SKIPPED_DIRS = {".git"}


def sanitize_name(name: str) -> str:
    """Lower-case, spaces to hyphens, drop everything outside ``[a-z0-9-]``."""
    return _UNSAFE_NAME_RE.sub("", name.strip().lower().replace(" ", "-"))


def folder_name(skill: SkillDescriptor) -> str:
    """Flat destination folder name for an installed skill.

    ``nested/my-skill`` installs as ``my-skill``. A descriptor sitting
    directly at the scanned root has no folder of its own, so the declared
    name is sanitized instead.
    """
    rel = skill.relative_path.strip().replace("\\", "/").strip("/")
    if rel and rel != ".":
        base = PurePosixPath(rel).name
        if base and base not in (".", ".."):
            return base
    return sanitize_name(skill.name)


async def copy_file(src: Path, dst: Path) -> None:
    async with aiofiles.open(src, "rb") as reader, aiofiles.open(dst, "wb") as writer:
        while True:
            chunk = await reader.read(1024 * 128)
            if not chunk:
                break
            await writer.write(chunk)
    await asyncio.to_thread(shutil.copymode, src, dst)


async def copy_tree(src: Path, dst: Path) -> None:
    """Copy ``src`` into ``dst`` (created if needed), keeping file modes."""
    src = Path(src)
    dst = Path(dst)
    if not await aiofiles.os.path.isdir(src):
        raise FileNotFoundError(f"source directory not found: {src}")

    def _walk() -> list[tuple[Path, list[str], list[str]]]:
        results = []
        for root, dirs, files in os.walk(src):
            dirs[:] = [d for d in dirs if d not in _SKIPPED_DIRS]
            results.append((Path(root), list(dirs), files))
        return results

    for root, dirs, files in await asyncio.to_thread(_walk):
        rel = root.relative_to(src)
        target_dir = dst / rel
        await aiofiles.os.makedirs(target_dir, exist_ok=True)
        for filename in files:
            await copy_file(root / filename, target_dir / filename)
        for dirname in dirs:
            await aiofiles.os.makedirs(target_dir / dirname, exist_ok=True)


async def remove_tree(path: Path) -> None:
    path = Path(path)
    if await aiofiles.os.path.islink(path) or await aiofiles.os.path.isfile(path):
        await aiofiles.os.remove(path)
        return
    if not await aiofiles.os.path.exists(path):
        return
    await asyncio.to_thread(shutil.rmtree, path)


async def replace_tree(src: Path, dst: Path) -> None:
    """Replace ``dst`` wholesale with a copy of ``src``."""
    await remove_tree(dst)
    await copy_tree(src, dst)


def format_candidate_list(paths: Iterable[str | Path]) -> str:
    return "\n".join(f"- {p}" for p in paths)
