"""Skill source and synchronization engine for skli."""

from .errors import (
    AmbiguousNameError,
    CloneError,
    CopyError,
    NoChangesError,
    NoSkillsFoundError,
    NotFoundError,
    ReadError,
    RemoteQueryError,
    SkliError,
    UnsafePathError,
)
from .lockfile import LockStore
from .publish import PublishFlow
from .registry import SkillRegistry, safe_delete_path
from .service import SkliService, SyncSummary, UploadResult
from .source import SourceAdapter
from .sync import SyncEngine
from .types import (
    InstalledSkill,
    InstallResult,
    Registry,
    RepoReference,
    ScanResult,
    SkillDescriptor,
    SyncOutcome,
    SyncStatus,
)
from .urls import parse_git_url

__all__ = [
    "AmbiguousNameError",
    "CloneError",
    "CopyError",
    "InstallResult",
    "InstalledSkill",
    "LockStore",
    "NoChangesError",
    "NoSkillsFoundError",
    "NotFoundError",
    "PublishFlow",
    "ReadError",
    "Registry",
    "RemoteQueryError",
    "RepoReference",
    "ScanResult",
    "SkillDescriptor",
    "SkillRegistry",
    "SkliError",
    "SkliService",
    "SourceAdapter",
    "SyncEngine",
    "SyncOutcome",
    "SyncStatus",
    "SyncSummary",
    "UnsafePathError",
    "UploadResult",
    "parse_git_url",
    "safe_delete_path",
]
