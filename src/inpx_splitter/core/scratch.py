"""Temporary resources owned by a single pipeline run."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from inpx_splitter.core.errors import CleanupError

log = logging.getLogger(__name__)


class ScratchTracker:
    """Create temporary paths and remove all of them on release.

    Use as a context manager; release happens on every exit path. Removal
    failures are logged and never raised.
    """

    def __init__(self, prefix: str = "inpx_split_", base_dir: Path | None = None):
        self.prefix = prefix
        self.base_dir = base_dir
        self.tracked: list[Path] = []
        self.errors: list[CleanupError] = []

    def make_dir(self, name: str | None = None) -> Path:
        """Create and track a fresh temporary directory."""
        prefix = f"{self.prefix}{name}_" if name else self.prefix
        path = Path(tempfile.mkdtemp(prefix=prefix, dir=self.base_dir))
        return self.track(path)

    def track(self, path: Path) -> Path:
        """Register an existing path for removal on release."""
        path = Path(path)
        self.tracked.append(path)
        log.debug("Tracking scratch path %s", path)
        return path

    def remove(self, path: Path) -> None:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()

    def release(self) -> None:
        """Remove every tracked path, most recent first.

        An interrupt during one removal does not stop the others; the first
        one is re-raised after every path has been attempted.
        """
        interrupt: KeyboardInterrupt | None = None
        while self.tracked:
            path = self.tracked.pop()
            log.debug("Deleting %s", path)
            try:
                self.remove(path)
            except OSError as e:
                error = CleanupError(f"Could not remove {path}: {e}")
                self.errors.append(error)
                log.warning("%s", error)
            except KeyboardInterrupt as e:
                log.warning("Interrupted while removing %s, continuing cleanup", path)
                interrupt = interrupt or e

        if interrupt is not None:
            raise interrupt

    def __enter__(self) -> ScratchTracker:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()
