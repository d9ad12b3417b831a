"""SKILL.md front-matter parsing."""

from __future__ import annotations

from pathlib import Path

import aiofiles

from .errors import ReadError
from .types import SkillMetadata

SKILL_FILENAME = "SKILL.md"
FRONTMATTER_DELIMITER = "---"
DEFAULT_MAX_LINES = 40
# Discovery parses every descriptor of a checkout, so it reads less of each.
SCAN_MAX_LINES = 20


async def parse_file(skill_file: Path, max_lines: int = DEFAULT_MAX_LINES) -> SkillMetadata:
    """Read ``name`` and ``description`` from a descriptor's front-matter.

    Only the first ``max_lines`` lines are looked at. Keys must start at
    column 0. A file without front-matter gives empty metadata.

    Raises:
        ReadError: If the file cannot be opened or read.
    """
    if max_lines <= 0:
        max_lines = DEFAULT_MAX_LINES

    name = ""
    description = ""
    in_frontmatter = False
    line_count = 0

    try:
        async with aiofiles.open(skill_file, encoding="utf-8") as handle:
            async for raw in handle:
                line_count += 1
                line = raw.rstrip("\r\n")

                if line.strip() == FRONTMATTER_DELIMITER:
                    if in_frontmatter:
                        break
                    in_frontmatter = True
                    continue

                if in_frontmatter:
                    if line.startswith("name:"):
                        name = line[len("name:") :].strip()
                    elif line.startswith("description:"):
                        description = line[len("description:") :].strip()

                if line_count >= max_lines:
                    break
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(f"could not read {skill_file}", output=str(e)) from e

    return SkillMetadata(name=name, description=description)


async def parse_dir(skill_dir: Path, max_lines: int = DEFAULT_MAX_LINES) -> SkillMetadata:
    """Parse ``<skill_dir>/SKILL.md``, naming the skill after its folder if needed."""
    meta = await parse_file(Path(skill_dir) / SKILL_FILENAME, max_lines)
    if not meta.name:
        return SkillMetadata(name=Path(skill_dir).name, description=meta.description)
    return meta
