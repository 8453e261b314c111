"""Tests for session_files.py — directory scan and JSONL iteration."""

import pytest

from session_files import (
    SessionsDirectoryError,
    find_session_files,
    iter_jsonl,
    read_session_file,
    session_id_from_path,
)


class TestFindSessionFiles:
    """Tests for find_session_files."""

    def test_only_jsonl_files(self, sessions_dir, make_session, make_metadata):
        make_session("b-session", [{"role": "user", "content": "x"}])
        make_session("a-session", [{"role": "user", "content": "x"}])
        make_metadata({})
        (sessions_dir / "notes.txt").write_text("not a session")

        names = [p.name for p in find_session_files(sessions_dir)]
        assert names == ["a-session.jsonl", "b-session.jsonl"]

    def test_empty_directory(self, sessions_dir):
        assert find_session_files(sessions_dir) == []

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(SessionsDirectoryError):
            find_session_files(tmp_path / "does-not-exist")

    def test_error_is_oserror(self, tmp_path):
        with pytest.raises(OSError) as excinfo:
            find_session_files(tmp_path / "missing")
        assert isinstance(excinfo.value.__cause__, FileNotFoundError)

    def test_does_not_recurse(self, sessions_dir, make_session):
        make_session("top", [])
        nested = sessions_dir / "archive"
        nested.mkdir()
        (nested / "old.jsonl").write_text("{}\n")
        assert [p.name for p in find_session_files(sessions_dir)] == ["top.jsonl"]


class TestSessionIdFromPath:
    def test_strips_extension(self, tmp_path):
        assert session_id_from_path(tmp_path / "main-001.jsonl") == "main-001"

    def test_keeps_inner_dots(self, tmp_path):
        assert session_id_from_path(tmp_path / "a.b.jsonl") == "a.b"


class TestReadSessionFile:
    def test_returns_text_and_stat(self, make_session):
        path = make_session("s", [{"role": "user", "content": "hi"}])
        text, stat = read_session_file(path)
        assert '"role": "user"' in text
        assert stat.st_size == path.stat().st_size

    def test_invalid_utf8_replaced(self, sessions_dir):
        path = sessions_dir / "bad.jsonl"
        path.write_bytes(b'{"role": "user"}\n\xff\xfe\n')
        text, _stat = read_session_file(path)
        assert text.startswith('{"role": "user"}')

    def test_missing_file_raises(self, sessions_dir):
        with pytest.raises(OSError):
            read_session_file(sessions_dir / "gone.jsonl")


class TestIterJsonl:
    """Tests for iter_jsonl."""

    def test_skips_blank_lines(self):
        text = '{"a": 1}\n\n   \n{"b": 2}\n'
        assert list(iter_jsonl(text)) == [(1, {"a": 1}), (4, {"b": 2})]

    def test_malformed_line_yields_none(self):
        text = '{"a": 1}\nNOT VALID JSON {{{\n{"b": 2}'
        assert list(iter_jsonl(text)) == [(1, {"a": 1}), (2, None), (3, {"b": 2})]

    def test_truncated_trailing_line(self):
        text = '{"role": "user", "content": "hi"}\n{"role": "assis'
        results = list(iter_jsonl(text))
        assert results[0][1] == {"role": "user", "content": "hi"}
        assert results[1] == (2, None)

    def test_line_separator_inside_string(self):
        text = '{"text": "a\u2028b"}\n'
        assert list(iter_jsonl(text)) == [(1, {"text": "a\u2028b"})]

    def test_empty_text(self):
        assert list(iter_jsonl("")) == []

    def test_oversized_integer_yields_none(self):
        # json.loads raises a plain ValueError past the int digit limit
        text = '{"a": 1}\n{"n": ' + "1" * 5000 + '}\n{"b": 2}'
        assert list(iter_jsonl(text)) == [(1, {"a": 1}), (2, None), (3, {"b": 2})]

    def test_deep_nesting_yields_none(self):
        text = '{"a": 1}\n' + "[" * 100000 + "]" * 100000
        assert list(iter_jsonl(text)) == [(1, {"a": 1}), (2, None)]
