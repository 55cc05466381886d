"""Tests for the file scanner utility."""

import tempfile
from pathlib import Path

from gman.utils.file_scanner import SKIP_DIRS, list_files, list_top_level_dirs, read_text


def test_list_files_is_recursive_and_sorted():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "b").mkdir()
        (root / "a").mkdir()
        (root / "b" / "one.xml").write_text("<one/>")
        (root / "a" / "two.xml").write_text("<two/>")
        (root / "three.xml").write_text("<three/>")
        (root / "readme.md").write_text("# readme")

        files = list_files(root, "*.xml")
        assert [f.relative_to(root).as_posix() for f in files] == [
            "a/two.xml",
            "b/one.xml",
            "three.xml",
        ]


def test_list_files_skips_excluded_dirs():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / ".svn").mkdir()
        (root / ".svn" / "copy.xml").write_text("<copy/>")
        (root / "real.xml").write_text("<real/>")

        files = list_files(root, "*.xml")
        assert [f.name for f in files] == ["real.xml"]


def test_list_top_level_dirs():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "Release2").mkdir()
        (root / "Release1").mkdir()
        (root / "file.sql").write_text("")
        assert [d.name for d in list_top_level_dirs(root)] == ["Release1", "Release2"]


def test_read_text_drops_byte_order_mark():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "bom.xml"
        path.write_bytes("﻿<a/>".encode("utf-8"))
        assert read_text(path) == "<a/>"


def test_skip_dirs_contains_expected():
    assert ".git" in SKIP_DIRS
    assert ".svn" in SKIP_DIRS
