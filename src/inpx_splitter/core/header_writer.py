"""Rewrite the collection.info header of a variant archive."""

import logging
from datetime import datetime

from inpx_splitter.core.archive import InpxArchive
from inpx_splitter.core.errors import EntryNotFoundError, VersionMarkerMissingError

log = logging.getLogger(__name__)

HEADER_ENTRY = "collection.info"
VERSION_ENTRY = "version.info"
SOURCE_URL = "http://flibusta.is/"

HEADER_TEMPLATE = (
    "Flibusta {tag} local {version}\n"
    "0\n"
    "Flibusta. A local {tag} collection. Total: {count} {tag} books\n"
    "{url}\n"
    "\n"
)


def parse_version(raw: bytes | str) -> str:
    """Turn a `YYYYMMDD...` version stamp into `YYYY-MM-DD`.

    Only the first eight characters are considered; anything after them
    (a trailing newline included) is ignored. Leading whitespace is not.

    Raises:
        VersionMarkerMissingError: If the stamp is short or not a date
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    stamp = text[:8]

    if len(stamp) != 8 or not stamp.isdigit():
        raise VersionMarkerMissingError(f"Malformed version stamp: {text[:20]!r}")

    try:
        return datetime.strptime(stamp, "%Y%m%d").strftime("%Y-%m-%d")
    except ValueError as e:
        raise VersionMarkerMissingError(f"Invalid version date: {stamp!r}") from e


def build_header(tag: str, book_count: int, version: str) -> str:
    """Render the four-line header block, blank line included."""
    return HEADER_TEMPLATE.format(tag=tag, version=version, count=book_count, url=SOURCE_URL)


def read_version(archive: InpxArchive) -> str:
    """Read and parse the archive's version.info entry."""
    try:
        raw = archive.read_entry(VERSION_ENTRY)
    except EntryNotFoundError as e:
        raise VersionMarkerMissingError(
            f"{VERSION_ENTRY} is missing from {archive.path.name}"
        ) from e
    return parse_version(raw)


def rewrite_header(archive: InpxArchive, tag: str, book_count: int) -> str:
    """Replace collection.info with a header for this variant.

    Returns:
        The header text written to the archive
    """
    version = read_version(archive)
    header = build_header(tag, book_count, version)
    archive.upsert_entry(HEADER_ENTRY, header)

    log.debug("Header updated for %s (%d books, version %s)", tag, book_count, version)
    return header
