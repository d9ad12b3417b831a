"""Error taxonomy for the skill source and synchronization engine.

Every error is terminal for the operation that raised it. None of them are
retried inside the engine; retrying is left to whoever called it.
"""

from __future__ import annotations


class SkliError(Exception):
    """Base class for engine errors.

    Carries enough context to be shown to the user verbatim: the skill name,
    the repository URL and the captured output of an external process.
    """

    def __init__(
        self,
        message: str,
        *,
        skill: str | None = None,
        repo_url: str | None = None,
        output: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.skill = skill
        self.repo_url = repo_url
        self.output = output

    def __str__(self) -> str:
        text = self.message
        if self.output:
            text = f"{text}: {self.output.strip()}"
        return text


class CloneError(SkliError):
    """A git step of a clone/checkout/push failed (network, auth, missing ref)."""


class RemoteQueryError(SkliError):
    """The remote or its ref could not be queried without cloning."""


class NoSkillsFoundError(SkliError):
    """The checkout succeeded but holds no SKILL.md descriptors."""


class CopyError(SkliError):
    """Copying a skill tree into its destination failed."""


class UnsafePathError(SkliError):
    """A deletion target is outside the skills root or is the root itself."""


class NotFoundError(SkliError):
    """No skill matches the requested name or path."""


class AmbiguousNameError(SkliError):
    """More than one skill matches the requested name."""

    def __init__(self, message: str, matches: list[str], **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.matches = matches


class NoChangesError(SkliError):
    """The staged diff is empty, so there is nothing to publish."""


class ReadError(SkliError):
    """A descriptor file could not be opened or read."""
