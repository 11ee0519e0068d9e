"""Tests for book counting over extracted record files."""

import pytest

from inpx_splitter.core.book_counter import count_books, count_lines, find_record_files
from inpx_splitter.core.errors import NoRecordsWarning, RecordReadError


class TestCountLines:
    def test_terminated_lines(self, tmp_path):
        path = tmp_path / "x.inp"
        path.write_bytes(b"a\nb\nc\n")
        assert count_lines(path) == 3

    def test_unterminated_last_line_counts(self, tmp_path):
        path = tmp_path / "x.inp"
        path.write_bytes(b"a\nb\nc")
        assert count_lines(path) == 3

    def test_empty_file(self, tmp_path):
        path = tmp_path / "x.inp"
        path.write_bytes(b"")
        assert count_lines(path) == 0

    def test_single_line_without_newline(self, tmp_path):
        path = tmp_path / "x.inp"
        path.write_bytes(b"only")
        assert count_lines(path) == 1

    def test_crlf_lines(self, tmp_path):
        path = tmp_path / "x.inp"
        path.write_bytes(b"a\r\nb\r\n")
        assert count_lines(path) == 2

    def test_line_spanning_chunk_boundary(self, tmp_path, monkeypatch):
        monkeypatch.setattr("inpx_splitter.core.book_counter._CHUNK_SIZE", 4)
        path = tmp_path / "x.inp"
        path.write_bytes(b"abc\ndefgh\nij")
        assert count_lines(path) == 3


class TestCountBooks:
    def test_sums_all_matching_files(self, tmp_path):
        (tmp_path / "a-fb2-1.inp").write_text("1\n2\n3\n")
        (tmp_path / "a-fb2-2.inp").write_text("")
        (tmp_path / "a-fb2-3.inp").write_text("1\n2\n3\n4\n5\n")
        assert count_books(tmp_path, "*fb2-*.inp") == 8

    def test_ignores_other_variants_and_markers(self, tmp_path):
        (tmp_path / "a-fb2-1.inp").write_text("1\n2\n")
        (tmp_path / "a-usr-1.inp").write_text("1\n2\n3\n4\n5\n")
        (tmp_path / "version.info").write_text("20250101\n")
        assert count_books(tmp_path, "*fb2-*.inp") == 2

    def test_finds_nested_files(self, tmp_path):
        nested = tmp_path / "sub"
        nested.mkdir()
        (nested / "a-usr-1.inp").write_text("1\n2\n")
        assert count_books(tmp_path, "*usr-*.inp") == 2

    def test_no_matches_warns_and_returns_zero(self, tmp_path):
        (tmp_path / "a-usr-1.inp").write_text("1\n")
        with pytest.warns(NoRecordsWarning, match=r"\*fb2-\*\.inp"):
            assert count_books(tmp_path, "*fb2-*.inp") == 0

    def test_reports_progress_per_file(self, tmp_path):
        for i in range(3):
            (tmp_path / f"a-fb2-{i}.inp").write_text("x\n")
        calls = []

        count_books(tmp_path, "*fb2-*.inp", on_progress=lambda *a: calls.append(a), label="fb2")

        assert calls == [(1, 3, "fb2"), (2, 3, "fb2"), (3, 3, "fb2")]

    def test_unreadable_file_aborts(self, tmp_path, monkeypatch):
        (tmp_path / "a-fb2-1.inp").write_text("1\n")
        bad = tmp_path / "a-fb2-2.inp"
        bad.write_text("1\n")

        real_count = count_lines

        def flaky(path):
            if path == bad:
                raise PermissionError("denied")
            return real_count(path)

        monkeypatch.setattr("inpx_splitter.core.book_counter.count_lines", flaky)

        with pytest.raises(RecordReadError) as exc_info:
            count_books(tmp_path, "*fb2-*.inp")
        assert exc_info.value.file == bad


def test_find_record_files_is_sorted(tmp_path):
    for name in ["c-fb2-1.inp", "a-fb2-1.inp", "b-fb2-1.inp"]:
        (tmp_path / name).write_text("")
    assert [p.name for p in find_record_files(tmp_path, "*fb2-*.inp")] == [
        "a-fb2-1.inp",
        "b-fb2-1.inp",
        "c-fb2-1.inp",
    ]
