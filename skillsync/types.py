"""Data models for skill sources, the lock file and sync outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import SkliError


@dataclass(frozen=True)
class SkillMetadata:
    name: str = ""
    description: str = ""


@dataclass(frozen=True)
class SkillDescriptor:
    """A skill found while scanning a checkout. Never persisted."""

    name: str
    description: str
    relative_path: str  # skill directory relative to the scanned sub-path


@dataclass(frozen=True)
class RepoReference:
    base_url: str
    branch: str = "HEAD"  # HEAD means the remote's default branch
    sub_path: str = ""


@dataclass(frozen=True)
class ScanResult:
    skills: list[SkillDescriptor]
    working_dir: Path
    commit_hash: str
    effective_sub_path: str


@dataclass(frozen=True)
class InstallResult:
    skill: SkillDescriptor
    destination: Path
    error: SkliError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class InstalledSkill:
    """One row of the lock file, keyed by ``local_path``."""

    name: str
    description: str
    local_path: str
    origin_repo: str = ""
    origin_root: str = ""
    origin_relative_path: str = ""
    commit_hash: str = ""
    installed_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_managed(self) -> bool:
        return bool(self.origin_repo)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "local_path": self.local_path,
            "origin_repo": self.origin_repo,
            "origin_root": self.origin_root,
            "origin_relative_path": self.origin_relative_path,
            "commit_hash": self.commit_hash,
            "installed_at": _format_time(self.installed_at),
            "updated_at": _format_time(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstalledSkill:
        return cls(
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            local_path=str(data.get("local_path") or ""),
            origin_repo=str(data.get("origin_repo") or ""),
            origin_root=str(data.get("origin_root") or ""),
            origin_relative_path=str(data.get("origin_relative_path") or ""),
            commit_hash=str(data.get("commit_hash") or ""),
            installed_at=_parse_time(data.get("installed_at")),
            updated_at=_parse_time(data.get("updated_at")),
        )


@dataclass
class Registry:
    """In-memory image of the lock file."""

    last_updated: datetime | None = None
    skills: list[InstalledSkill] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_updated": _format_time(self.last_updated),
            "skills": [skill.to_dict() for skill in self.skills],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Registry:
        if not data:
            return cls()
        entries = data.get("skills") or []
        return cls(
            last_updated=_parse_time(data.get("last_updated")),
            skills=[InstalledSkill.from_dict(entry) for entry in entries if isinstance(entry, dict)],
        )


class SyncStatus(str, Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class SyncOutcome:
    """Result of one skill in one synchronization pass."""

    skill_name: str
    local_path: str
    status: SyncStatus
    reason: str | None = None

    @classmethod
    def updated(cls, skill: InstalledSkill) -> SyncOutcome:
        return cls(skill.name, skill.local_path, SyncStatus.UPDATED)

    @classmethod
    def skipped(cls, skill: InstalledSkill) -> SyncOutcome:
        return cls(skill.name, skill.local_path, SyncStatus.SKIPPED)

    @classmethod
    def error(cls, skill: InstalledSkill, reason: str) -> SyncOutcome:
        return cls(skill.name, skill.local_path, SyncStatus.ERROR, reason)


def _format_time(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_time(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
