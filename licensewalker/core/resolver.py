"""
License resolution for a single package manifest.

Tiers are tried in a fixed order and the first one that produces an
annotation wins:

1. the declared ``license`` / ``licenses`` field,
2. a LICENSE file at the root of the source repository,
3. a README at the root of the source repository mentioning a license,
4. the literal ``unknown``.
"""
import json
import logging
import re
from typing import Any, Iterable, Mapping, Optional

from licensewalker.clients.base import DirectoryEntry, DirectoryListing, RepositoryClient
from licensewalker.core.errors import RepositoryError, RepositoryReferenceError
from licensewalker.core.model import UNKNOWN_LICENSE, LicenseSource, Resolution
from licensewalker.core.repository import RepositoryReference, raw_url_from_content_url

SNIPPET_LENGTH = 160
ELLIPSIS = "..."

_NEWLINES_RE = re.compile(r'\r\n?|\n')


def format_license(value: Any) -> str:
    """Renders a declared license value as a single string.

    Handles SPDX strings, the legacy ``{type, url}`` object and lists of
    either.
    """
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        if value.get("type"):
            return str(value["type"])
        return json.dumps(value, sort_keys=True)
    if isinstance(value, (list, tuple)):
        return ", ".join(filter(None, (format_license(item) for item in value)))
    return json.dumps(value)


def declared_license(metadata: Mapping[str, Any]) -> Optional[str]:
    for key in ("license", "licenses"):
        value = metadata.get(key)
        if value is None:
            continue
        formatted = format_license(value)
        if formatted:
            return formatted
    return None


def excerpt(text: str, start: int = 0, length: int = SNIPPET_LENGTH) -> str:
    window = text[start:start + length]
    if len(text) - start > length:
        window += ELLIPSIS
    return window


def collapse_newlines(text: str) -> str:
    return _NEWLINES_RE.sub(" ", text)


def find_entry(entries: Iterable[DirectoryEntry], prefix: str) -> Optional[DirectoryEntry]:
    """First entry, in listing order, whose name starts with ``prefix`` (any case)."""
    for entry in entries:
        if entry.name.lower().startswith(prefix):
            return entry
    return None


class LicenseResolver:
    def __init__(self, repository: RepositoryClient) -> None:
        self.repository = repository

    async def resolve(self, name: str, metadata: Mapping[str, Any]) -> Resolution:
        declared = declared_license(metadata)
        if declared is not None:
            return Resolution(declared, LicenseSource.DECLARED)

        reference = RepositoryReference.from_metadata(metadata.get("repository"))
        if reference is None:
            logging.debug(f"{name}: no license field and no repository")
            return Resolution(UNKNOWN_LICENSE, LicenseSource.UNKNOWN)

        try:
            slug = reference.parse()
        except RepositoryReferenceError as e:
            logging.debug(f"{name}: {e}")
            return Resolution(UNKNOWN_LICENSE, LicenseSource.UNKNOWN)

        try:
            listing = await self.repository.list_directory(slug.owner, slug.project)
        except RepositoryError as e:
            logging.warning(f"{name}: listing {slug.owner}/{slug.project} failed: {e}")
            return Resolution(UNKNOWN_LICENSE, LicenseSource.UNKNOWN)

        resolution = await self._from_license_file(name, listing)
        if resolution is None:
            resolution = await self._from_readme(name, listing)

        return resolution or Resolution(UNKNOWN_LICENSE, LicenseSource.UNKNOWN)

    async def _from_license_file(self, name: str, listing: DirectoryListing) -> Optional[Resolution]:
        entry = find_entry(listing.entries, "license")
        if entry is None:
            return None

        content = await self._fetch(name, entry)
        if content is None:
            return None

        logging.debug(f"{name}: license taken from {entry.name}")
        return Resolution(excerpt(collapse_newlines(content)), LicenseSource.LICENSE_FILE)

    async def _from_readme(self, name: str, listing: DirectoryListing) -> Optional[Resolution]:
        # Non-200 listings surface the API error body as the annotation
        if not listing.ok:
            if listing.body:
                return Resolution(collapse_newlines(listing.body.strip()), LicenseSource.README)
            return None

        entry = find_entry(listing.entries, "readme")
        if entry is None:
            return None

        content = await self._fetch(name, entry)
        if content is None:
            return None

        text = collapse_newlines(content)
        position = text.lower().find("license")
        if position < 0:
            return None

        logging.debug(f"{name}: license mention found in {entry.name} at {position}")
        return Resolution(excerpt(text, position), LicenseSource.README)

    async def _fetch(self, name: str, entry: DirectoryEntry) -> Optional[str]:
        # RawUrlError propagates: a malformed contents URL is a client bug, not a missing file
        raw_url = raw_url_from_content_url(entry.url)
        try:
            return await self.repository.fetch_raw_content(raw_url)
        except RepositoryError as e:
            logging.warning(f"{name}: could not fetch {entry.name}: {e}")
            return None
