"""Shared fixtures: synthetic INPX archives."""

import zipfile
from pathlib import Path

import pytest

SOURCE_ENTRIES = {
    "collection.info": "Flibusta all local 2025-01-01\n0\nFull collection\nhttp://flibusta.is/\n\n",
    "version.info": "20250101\n",
    "a.info": "author info\n",
    "author-fb2-1.inp": "fb2 book 1\nfb2 book 2\n",
    "author-usr-1.inp": "usr 1\nusr 2\nusr 3\nusr 4\nusr 5\n",
}


def write_zip(path: Path, entries: dict[str, str | bytes]) -> Path:
    """Write entries to a deflated zip in the given order."""
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return path


def zip_contents(path: Path) -> dict[str, bytes]:
    with zipfile.ZipFile(path) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


@pytest.fixture
def make_zip(tmp_path):
    """Factory writing a zip archive under tmp_path."""

    def _make(name: str, entries: dict[str, str | bytes]) -> Path:
        return write_zip(tmp_path / name, entries)

    return _make


@pytest.fixture
def read_zip():
    """Return {name: bytes} for every entry of an archive."""
    return zip_contents


@pytest.fixture
def source_archive(make_zip):
    """A small full catalog named with the `_all_` placeholder."""
    return make_zip("flibusta_all_local.inpx", SOURCE_ENTRIES)
