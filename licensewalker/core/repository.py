"""Repository references and content-URL transforms for GitHub.

Both helpers are pure: they never touch the network, and they fail with a
structured error instead of returning half-parsed values.
"""
import re
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import parse_qs, unquote, urlsplit

from licensewalker.config import GITHUB_RAW_BASE
from licensewalker.core.errors import RawUrlError, RepositoryReferenceError

# https://github.com/o/p, git+https://..., git://..., ssh://git@github.com/o/p.git
_URL_RE = re.compile(
    r'^(?:git\+)?(?:https?|git|ssh)://(?:[^@/\s]+@)?(?:www\.)?github\.com[/:]'
    r'(?P<owner>[^/\s]+)/(?P<project>[^/#?\s]+)'
)
# git@github.com:o/p.git
_SCP_RE = re.compile(r'^(?:[^@/\s]+@)?github\.com:(?P<owner>[^/\s]+)/(?P<project>[^/#?\s]+)')
# github:o/p and the bare npm shorthand o/p
_SHORTHAND_RE = re.compile(r'^(?:github:)?(?P<owner>[\w.-]+)/(?P<project>[\w.-]+)$')

# An API base such as https://ghe.example/api/v3 prefixes the path
_CONTENTS_PATH_RE = re.compile(r'^(?:/[^?#]*?)?/repos/(?P<owner>[^/]+)/(?P<project>[^/]+)/contents/(?P<path>.+)$')


@dataclass(frozen=True)
class RepositorySlug:
    owner: str
    project: str


@dataclass(frozen=True)
class RepositoryReference:
    url: str

    @classmethod
    def from_metadata(cls, value: Any) -> Optional['RepositoryReference']:
        """Builds a reference from a manifest's ``repository`` field.

        npm accepts either a plain string or a ``{type, url}`` object there.
        """
        if isinstance(value, dict):
            value = value.get("url")
        if isinstance(value, str) and value.strip():
            return cls(value.strip())
        return None

    def parse(self) -> RepositorySlug:
        return parse_repository_url(self.url)


def parse_repository_url(url: str) -> RepositorySlug:
    """Extracts ``{owner, project}`` from a GitHub repository URL."""
    for pattern in (_URL_RE, _SCP_RE, _SHORTHAND_RE):
        match = pattern.match(url)
        if match:
            project = match.group("project")
            if project.endswith(".git"):
                project = project[:-4]
            if not project:
                break
            return RepositorySlug(match.group("owner"), project)

    raise RepositoryReferenceError(f"Unsupported repository URL: {url!r}")


def raw_url_from_content_url(content_url: str, raw_base: str = GITHUB_RAW_BASE) -> str:
    """
    Translates a contents-API entry URL into its raw download URL.

    ``https://api.github.com/repos/o/p/contents/LICENSE?ref=main`` becomes
    ``https://raw.githubusercontent.com/o/p/main/LICENSE``.
    """
    parts = urlsplit(content_url)
    match = _CONTENTS_PATH_RE.match(parts.path)
    if not parts.scheme or not parts.netloc or not match:
        raise RawUrlError(f"Not a repository contents URL: {content_url!r}")

    refs = parse_qs(parts.query).get("ref")
    if not refs or not refs[0]:
        raise RawUrlError(f"Contents URL carries no ref: {content_url!r}")

    owner = match.group("owner")
    project = match.group("project")
    path = unquote(match.group("path"))
    return f"{raw_base.rstrip('/')}/{owner}/{project}/{refs[0]}/{path}"
