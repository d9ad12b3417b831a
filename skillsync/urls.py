"""Repository reference parsing.

Pure string handling: nothing here touches the network or the filesystem.
"""

from __future__ import annotations

from urllib.parse import urlencode, urlparse

from .types import RepoReference

# Browse-URL delimiters, most specific first (GitLab puts "/-" before "tree").
_BROWSE_MARKERS = ("/-/tree/", "/tree/", "/src/")

PROVIDER_GITHUB = "github"
PROVIDER_GITLAB = "gitlab"
PROVIDER_BITBUCKET = "bitbucket"
PROVIDER_UNKNOWN = "unknown"


def _is_ssh(value: str) -> bool:
    return value.startswith("git@") or value.startswith("ssh://")


def parse_git_url(url: str) -> RepoReference:
    """Split a clone or browse URL into base URL, branch and sub-path.

    ``https://github.com/org/repo/tree/main/skills/x`` gives
    ``("https://github.com/org/repo", "main", "skills/x")``; the Bitbucket
    ``/src/<branch>/`` form is handled the same way. SSH references and
    anything that does not look like a browse URL come back unchanged with
    the default branch and no sub-path.
    """
    url = url.strip()
    fallback = RepoReference(base_url=url)
    if not url or _is_ssh(url) or not url.lower().startswith(("http://", "https://")):
        return fallback

    for marker in _BROWSE_MARKERS:
        start = 0
        while True:
            idx = url.find(marker, start)
            if idx == -1:
                break
            start = idx + 1
            base = url[:idx].rstrip("/")
            repo_path = urlparse(base).path.strip("/")
            # Need at least "<owner>/<repo>" before the marker.
            if len(repo_path.split("/")) < 2:
                continue
            rest = url[idx + len(marker) :].strip("/")
            branch, _, sub_path = rest.partition("/")
            if not branch:
                return fallback
            return RepoReference(base_url=base, branch=branch, sub_path=sub_path.strip("/"))

    return fallback


def detect_provider(repo_url: str) -> str:
    lowered = repo_url.lower()
    if "github.com" in lowered:
        return PROVIDER_GITHUB
    if "gitlab.com" in lowered:
        return PROVIDER_GITLAB
    if "bitbucket.org" in lowered:
        return PROVIDER_BITBUCKET
    return PROVIDER_UNKNOWN


def normalize_repo_web_url(remote_url: str) -> str:
    """Turn any clone reference into ``https://host/owner/repo``."""
    base = parse_git_url(remote_url).base_url.strip()

    if base.startswith("git@"):
        host, sep, path = base[len("git@") :].partition(":")
        if sep:
            return f"https://{host}/{_strip_git_suffix(path.strip('/'))}"

    if base.startswith("ssh://"):
        parsed = urlparse(base)
        host = parsed.hostname or ""
        return f"https://{host}{_strip_git_suffix(parsed.path)}"

    parsed = urlparse(base)
    if parsed.netloc:
        scheme = parsed.scheme or "https"
        path = _strip_git_suffix(parsed.path.strip("/"))
        if path:
            path = f"/{path}"
        return f"{scheme}://{parsed.netloc}{path}"

    return _strip_git_suffix(base.strip("/"))


def build_pr_url(provider: str, repo_url: str, branch: str, target_branch: str, title: str) -> str:
    """Build the web URL where a PR/MR for ``branch`` can be opened by hand."""
    repo_web = normalize_repo_web_url(repo_url)

    if provider == PROVIDER_GITHUB:
        return f"{repo_web}/compare/{target_branch}...{branch}?expand=1"
    if provider == PROVIDER_GITLAB:
        query = urlencode(
            {
                "merge_request[source_branch]": branch,
                "merge_request[target_branch]": target_branch,
                "merge_request[title]": title,
            }
        )
        return f"{repo_web}/-/merge_requests/new?{query}"
    if provider == PROVIDER_BITBUCKET:
        query = urlencode({"dest": target_branch, "source": branch})
        return f"{repo_web}/pull-requests/new?{query}"
    return repo_web


def _strip_git_suffix(path: str) -> str:
    return path[: -len(".git")] if path.endswith(".git") else path
