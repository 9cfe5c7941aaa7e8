"""
End-to-end tests for the challenge table: identity, resolution, gate, window.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from core.filesystem import LocalFS
from metadata import LiveSystemProvider
from metadata.sqlite_provider import insert_osquery_info, insert_process
from tables import QueryContext
from tables.challenge import CHALLENGE_COLUMNS, ChallengeTable
from tests.fixtures.helpers import pattern_bytes
from tests.fixtures.metadata import OTHER_UID

requires_fifo = pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs os.mkfifo")


def _context(path=None, like=None, offset=None, columns=None) -> QueryContext:
    mapping = {}
    if path is not None or like is not None:
        mapping["path"] = []
        for value in ([path] if isinstance(path, str) else path or []):
            mapping["path"].append(("=", value))
        for value in ([like] if isinstance(like, str) else like or []):
            mapping["path"].append(("LIKE", value))
    if offset is not None:
        mapping["offset"] = [("=", value) for value in (offset if isinstance(offset, list) else [offset])]
    return QueryContext.from_mapping(mapping, requested_columns=columns)


@pytest.fixture
def table(caller) -> ChallengeTable:
    return ChallengeTable(caller.provider, LocalFS())


class TestWindowing:
    def test_default_offset_returns_first_window(self, table, caller, make_file):
        path = make_file("a.txt", 1500)
        caller.add_file(path)

        rows = table.generate(_context(path=str(path)))

        assert len(rows) == 1
        row = rows[0]
        assert row.path == str(path)
        assert row.offset == 0
        assert row.size == 1024
        assert row.data == pattern_bytes(1500)[:1024]

    def test_offset_returns_remaining_bytes(self, table, caller, make_file):
        path = make_file("a.txt", 1500)
        caller.add_file(path)

        rows = table.generate(_context(path=str(path), offset="1024"))

        assert len(rows) == 1
        assert rows[0].offset == 1024
        assert rows[0].size == 476
        assert rows[0].data == pattern_bytes(1500)[1024:]

    def test_offset_past_end_returns_nothing(self, table, caller, make_file):
        path = make_file("a.txt", 1500)
        caller.add_file(path)

        assert table.generate(_context(path=str(path), offset=2000)) == []

    def test_offset_equal_to_length_returns_nothing(self, table, caller, make_file):
        path = make_file("a.txt", 1500)
        caller.add_file(path)

        assert table.generate(_context(path=str(path), offset=1500)) == []

    def test_empty_file_returns_nothing(self, table, caller, make_file):
        path = make_file("empty.txt", 0)
        caller.add_file(path)

        assert table.generate(_context(path=str(path))) == []

    def test_first_offset_wins(self, table, caller, make_file):
        path = make_file("a.txt", 1500)
        caller.add_file(path)

        rows = table.generate(_context(path=str(path), offset=[10, 20]))

        assert [row.offset for row in rows] == [10]
        assert rows[0].data == pattern_bytes(1500)[10:1034]

    def test_configured_window_size(self, caller, make_file):
        path = make_file("a.txt", 100)
        caller.add_file(path)
        table = ChallengeTable(caller.provider, LocalFS(), window_size=16)

        rows = table.generate(_context(path=str(path), offset=90))

        assert rows[0].size == 10
        assert rows[0].data == pattern_bytes(100)[90:]


class TestOwnership:
    def test_like_pattern_only_returns_caller_owned_files(self, table, caller, make_file, tmp_path):
        mine = make_file("a.txt", 10)
        theirs = make_file("b.txt", 10)
        caller.add_file(mine)
        caller.add_file(theirs, uid=OTHER_UID)

        rows = table.generate(_context(like=f"{tmp_path}/%.txt"))

        assert [row.path for row in rows] == [str(mine)]

    def test_denial_is_logged_at_info(self, table, caller, make_file, caplog):
        theirs = make_file("b.txt", 10)
        caller.add_file(theirs, uid=OTHER_UID)

        with caplog.at_level(logging.INFO, logger="filewindow"):
            rows = table.generate(_context(path=str(theirs)))

        assert rows == []
        denials = [r for r in caplog.records if "Not allowed to read" in r.getMessage()]
        assert len(denials) == 1
        assert denials[0].levelno == logging.INFO

    def test_path_without_metadata_is_skipped(self, table, make_file):
        path = make_file("unknown.txt", 10)

        assert table.generate(_context(path=str(path))) == []

    def test_missing_file_with_metadata_is_skipped(self, table, caller, tmp_path, caplog):
        ghost = tmp_path / "vanished.txt"
        caller.add_file(ghost)

        with caplog.at_level(logging.ERROR, logger="filewindow"):
            rows = table.generate(_context(path=str(ghost)))

        assert rows == []
        assert any("Cannot read file" in r.getMessage() for r in caplog.records)

    def test_failure_on_one_path_does_not_stop_others(self, table, caller, make_file, tmp_path):
        ghost = tmp_path / "vanished.txt"
        caller.add_file(ghost)
        path = make_file("a.txt", 5)
        caller.add_file(path)

        rows = table.generate(_context(path=[str(ghost), str(path)]))

        assert [row.path for row in rows] == [str(path)]

    @requires_fifo
    def test_fifo_matched_by_pattern_is_skipped(self, table, caller, make_file, tmp_path, caplog):
        path = make_file("a.txt", 5)
        caller.add_file(path)
        fifo = tmp_path / "pipe.txt"
        os.mkfifo(fifo)
        caller.add_file(fifo)

        with caplog.at_level(logging.ERROR, logger="filewindow"):
            rows = table.generate(_context(like=f"{tmp_path}/%.txt"))

        assert [row.path for row in rows] == [str(path)]
        assert any(
            "not a regular file" in r.getMessage() and str(fifo) in r.getMessage() for r in caplog.records
        )

    def test_directory_matched_by_pattern_is_skipped(self, table, caller, make_file, tmp_path):
        path = make_file("a.txt", 5)
        caller.add_file(path)
        directory = tmp_path / "dir.txt"
        directory.mkdir()
        caller.add_file(directory)

        rows = table.generate(_context(like=f"{tmp_path}/%.txt"))

        assert [row.path for row in rows] == [str(path)]


class TestIdentity:
    def test_no_osquery_info_row_returns_empty(self, metadata_factory, make_file):
        ctx = metadata_factory()
        ctx.conn.execute("DELETE FROM osquery_info")
        path = make_file("a.txt", 10)
        ctx.add_file(path)

        table = ChallengeTable(ctx.provider, LocalFS())
        assert table.generate(_context(path=str(path))) == []

    def test_duplicate_osquery_info_rows_return_empty(self, caller, make_file, caplog):
        insert_osquery_info(caller.conn, "9999")
        path = make_file("a.txt", 10)
        caller.add_file(path)
        table = ChallengeTable(caller.provider, LocalFS())

        with caplog.at_level(logging.ERROR, logger="filewindow"):
            assert table.generate(_context(path=str(path))) == []
        assert any("Cannot resolve caller identity" in r.getMessage() for r in caplog.records)

    def test_ambiguous_process_rows_return_empty(self, caller, make_file):
        insert_process(caller.conn, caller.pid, "2000")
        path = make_file("a.txt", 10)
        caller.add_file(path)
        table = ChallengeTable(caller.provider, LocalFS())

        assert table.generate(_context(path=str(path))) == []


class TestConstraints:
    def test_negative_offset_returns_empty(self, table, caller, make_file, caplog):
        path = make_file("a.txt", 10)
        caller.add_file(path)

        with caplog.at_level(logging.ERROR, logger="filewindow"):
            assert table.generate(_context(path=str(path), offset=-1)) == []
        assert any("Invalid constraints" in r.getMessage() for r in caplog.records)

    def test_non_integer_offset_returns_empty(self, table, caller, make_file):
        path = make_file("a.txt", 10)
        caller.add_file(path)

        assert table.generate(_context(path=str(path), offset="ten")) == []

    def test_equality_and_pattern_paths_are_merged(self, table, caller, make_file, tmp_path):
        a = make_file("a.txt", 3)
        b = make_file("b.txt", 3)
        caller.add_file(a)
        caller.add_file(b)

        rows = table.generate(_context(path=str(a), like=f"{tmp_path}/%.txt"))

        assert [row.path for row in rows] == [str(a), str(b)]

    def test_same_query_twice_is_identical(self, table, caller, make_file, tmp_path):
        for name in ("a.txt", "b.txt", "c.txt"):
            caller.add_file(make_file(name, 2000))

        context = _context(like=f"{tmp_path}/%.txt", offset=1000)
        assert table.generate(context) == table.generate(context)


class TestProjection:
    def test_query_returns_visible_columns(self, table, caller, make_file):
        path = make_file("a.txt", 4)
        caller.add_file(path)

        rows = table.query(_context(path=str(path)))

        assert rows == [{"path": str(path), "offset": 0, "bytes": pattern_bytes(4), "size": 4}]

    def test_query_honours_requested_columns(self, table, caller, make_file):
        path = make_file("a.txt", 4)
        caller.add_file(path)

        rows = table.query(_context(path=str(path), columns=["size", "path"]))

        assert rows == [{"size": 4, "path": str(path)}]

    def test_schema(self, table):
        assert table.schema == CHALLENGE_COLUMNS
        assert table.routes() == {"path": "TEXT", "offset": "INTEGER", "bytes": "BLOB", "size": "INTEGER"}

    def test_rejects_non_positive_window(self, caller):
        with pytest.raises(ValueError, match="window_size"):
            ChallengeTable(caller.provider, window_size=0)


def test_live_provider_reads_own_files(make_file):
    path = make_file("live.txt", 2048)
    table = ChallengeTable(LiveSystemProvider())

    rows = table.generate(_context(path=str(path), offset=1000))

    assert len(rows) == 1
    assert rows[0].size == 1024
    assert rows[0].data == pattern_bytes(2048)[1000:2024]
