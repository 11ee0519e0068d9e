"""Count book records in extracted .inp files.

Each line of a record file describes one book, so the book count of a
variant is the sum of the line counts of its record files.
"""

import logging
import warnings
from pathlib import Path
from typing import Callable

from inpx_splitter.core.errors import NoRecordsWarning, RecordReadError

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

_CHUNK_SIZE = 1 << 20


def count_lines(path: Path) -> int:
    """Count lines the way a reader sees them, not the way `wc -l` does.

    A final line without a terminating newline still counts; a trailing
    newline does not add an empty line. An empty file has zero lines.
    """
    lines = 0
    last = b""
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            lines += chunk.count(b"\n")
            last = chunk[-1:]
    if last and last != b"\n":
        lines += 1
    return lines


def find_record_files(scratch_dir: Path, record_glob: str) -> list[Path]:
    """Find record files anywhere under scratch_dir matching record_glob."""
    return sorted(p for p in scratch_dir.rglob(record_glob) if p.is_file())


def count_books(
    scratch_dir: Path,
    record_glob: str,
    on_progress: ProgressCallback | None = None,
    label: str | None = None,
) -> int:
    """Sum the line counts of all record files matching record_glob.

    Args:
        scratch_dir: Directory holding the extracted archive
        record_glob: Glob selecting this variant's record files
        on_progress: Called with (files_done, files_total, label) after
            each file
        label: Label passed through to on_progress

    Returns:
        Total number of book records; 0 when nothing matched

    Raises:
        RecordReadError: If any record file cannot be read
    """
    label = label or record_glob
    files = find_record_files(scratch_dir, record_glob)

    if not files:
        warnings.warn(
            f"No record files matching '{record_glob}' found in {scratch_dir}",
            NoRecordsWarning,
            stacklevel=2,
        )
        return 0

    total = 0
    for done, path in enumerate(files, start=1):
        try:
            total += count_lines(path)
        except OSError as e:
            raise RecordReadError(path, e) from e

        if on_progress is not None:
            on_progress(done, len(files), label)

    log.debug("%s: %d books in %d files", label, total, len(files))
    return total
