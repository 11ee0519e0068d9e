"""Zip container access for INPX archives.

INPX files are plain zip archives with a flat listing of catalog files. This
module knows nothing about what the entries mean; it only lists, reads,
extracts and rewrites them.

Every mutation is copy-then-swap: the new archive is written to a temporary
file beside the original and moved over it with ``os.replace``, so a failed
write leaves the original untouched.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
import zipfile
import zlib
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable

from inpx_splitter.core.errors import (
    ArchiveError,
    ArchiveNotFoundError,
    ArchiveWriteError,
    CorruptArchiveError,
    EntryNotFoundError,
    ExtractionFailedError,
)

log = logging.getLogger(__name__)

# Errors zipfile can surface while decompressing a damaged member
_READ_ERRORS = (OSError, zipfile.BadZipFile, zlib.error, EOFError, RuntimeError)


def matches_any(name: str, patterns: Iterable[str]) -> bool:
    """Check an entry name against glob patterns.

    A pattern matches either the full entry name or its final path
    component, the same way ``7z -x@list`` applies wildcards.
    """
    base = PurePosixPath(name).name
    return any(fnmatchcase(name, p) or fnmatchcase(base, p) for p in patterns)


class InpxArchive:
    """Handle to a zip container on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def open(cls, path: Path) -> InpxArchive:
        """Open an existing archive, verifying it is a readable zip.

        Raises:
            ArchiveNotFoundError: If the file does not exist
            CorruptArchiveError: If the file is not a valid zip container
        """
        path = Path(path)
        if not path.is_file():
            raise ArchiveNotFoundError(f"Archive not found: {path}")

        archive = cls(path)
        with archive._zip():
            pass
        return archive

    def _zip(self) -> zipfile.ZipFile:
        try:
            return zipfile.ZipFile(self.path)
        except zipfile.BadZipFile as e:
            raise CorruptArchiveError(f"Not a valid zip archive: {self.path} ({e})") from e
        except FileNotFoundError as e:
            raise ArchiveNotFoundError(f"Archive not found: {self.path}") from e
        except OSError as e:
            raise ArchiveError(f"Cannot open {self.path}: {e}") from e

    def list_entries(self) -> list[str]:
        """Entry names in container order."""
        with self._zip() as zf:
            return zf.namelist()

    def read_entry(self, name: str) -> bytes:
        """Return the content of a single entry."""
        with self._zip() as zf:
            try:
                return zf.read(name)
            except KeyError as e:
                raise EntryNotFoundError(f"Entry '{name}' not found in {self.path.name}") from e
            except _READ_ERRORS as e:
                raise ArchiveError(f"Cannot read '{name}' from {self.path.name}: {e}") from e

    def extract_all(self, dest_dir: Path) -> list[Path]:
        """Extract every entry under dest_dir, preserving relative names.

        Any failing entry aborts the whole extraction.

        Returns:
            Paths of the extracted files
        """
        dest_dir = Path(dest_dir)
        extracted: list[Path] = []
        with self._zip() as zf:
            for info in zf.infolist():
                try:
                    extracted.append(Path(zf.extract(info, dest_dir)))
                except _READ_ERRORS as e:
                    raise ExtractionFailedError(
                        f"Failed to extract '{info.filename}' from {self.path.name}: {e}"
                    ) from e
        log.debug("Extracted %d entries from %s into %s", len(extracted), self.path.name, dest_dir)
        return extracted

    def prune(self, keep_patterns: Iterable[str]) -> list[str]:
        """Remove every entry that matches none of keep_patterns.

        Retained entries keep their order, metadata and compression type.

        Returns:
            Names of the removed entries
        """
        patterns = list(keep_patterns)
        removed: list[str] = []

        def transform(zin: zipfile.ZipFile, zout: zipfile.ZipFile) -> None:
            for info in zin.infolist():
                if matches_any(info.filename, patterns):
                    _copy_entry(zin, zout, info)
                else:
                    removed.append(info.filename)

        self._rewrite(transform)
        log.debug("Pruned %d entries from %s", len(removed), self.path.name)
        return removed

    def upsert_entry(self, name: str, content: bytes | str) -> None:
        """Replace the content of entry `name`, or append it if absent.

        An existing entry keeps its position in the listing.
        """
        data = content.encode("utf-8") if isinstance(content, str) else content

        def transform(zin: zipfile.ZipFile, zout: zipfile.ZipFile) -> None:
            written = False
            for info in zin.infolist():
                if info.filename != name:
                    _copy_entry(zin, zout, info)
                elif not written:
                    zout.writestr(_new_info(name, info.compress_type), data)
                    written = True
            if not written:
                zout.writestr(_new_info(name, zipfile.ZIP_DEFLATED), data)

        self._rewrite(transform)
        log.debug("Wrote entry %s (%d bytes) to %s", name, len(data), self.path.name)

    def _rewrite(self, transform: Callable[[zipfile.ZipFile, zipfile.ZipFile], None]) -> None:
        """Write a transformed copy beside the archive and swap it in."""
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as e:
            raise ArchiveWriteError(f"Cannot create temporary file for {self.path.name}: {e}") from e
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            try:
                with self._zip() as zin, zipfile.ZipFile(tmp_path, "w") as zout:
                    zout.comment = zin.comment
                    transform(zin, zout)
                os.replace(tmp_path, self.path)
            except _READ_ERRORS as e:
                raise ArchiveWriteError(f"Failed to rewrite {self.path.name}: {e}") from e
        finally:
            # No-op after a successful replace
            tmp_path.unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"InpxArchive({str(self.path)!r})"


def _copy_entry(zin: zipfile.ZipFile, zout: zipfile.ZipFile, info: zipfile.ZipInfo) -> None:
    # Read before writing: writestr updates header_offset on the ZipInfo
    data = zin.read(info)
    zout.writestr(info, data)


def _new_info(name: str, compress_type: int) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, date_time=_now())
    info.compress_type = compress_type
    info.external_attr = 0o644 << 16
    return info


def _now() -> tuple[int, int, int, int, int, int]:
    # Zip timestamps cannot predate 1980
    return max(tuple(time.localtime()[:6]), (1980, 1, 1, 0, 0, 0))
