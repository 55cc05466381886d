"""Tests for the command-line interface."""

import io
from pathlib import Path

import yaml
from click.testing import CliRunner
from loguru import logger

from gman import __version__
from gman.cli import main
from gman.utils.log import configure_logging

from tests.test_database import FILE_STATEMENT, PATCH_STATEMENT, make_database


def _make_code_source(root: Path) -> Path:
    code_source = root / "CodeSource"
    (code_source / "DatabasePatches" / "Release1").mkdir(parents=True)
    (code_source / "DatabasePatches" / "Release1" / "DDL100 (add column).sql").write_text("")
    (code_source / "DatabasePatches" / "Release1" / "DML7 (seed).sql").write_text("")
    folder = code_source / "Files"
    folder.mkdir()
    (folder / "a.xml").write_text("<a />\n")
    (folder / "b.xml").write_text("<b/>")
    return code_source


def _make_definitions(root: Path) -> Path:
    definitions = root / "gman"
    definitions.mkdir()
    data = {"name": "Files", "directory": "Files", "extension": "*.xml", "load_statement": FILE_STATEMENT}
    with open(definitions / "files.yaml", "w") as f:
        yaml.dump(data, f)
    return definitions


def _make_config(root: Path) -> Path:
    path = root / "settings.yaml"
    with open(path, "w") as f:
        yaml.dump({"patch_statement": PATCH_STATEMENT}, f)
    return path


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_compare_end_to_end(tmp_path):
    url = make_database(tmp_path)
    args = [
        "compare",
        "--directory", str(_make_code_source(tmp_path)),
        "--definitions", str(_make_definitions(tmp_path)),
        "--config", str(_make_config(tmp_path)),
        "--url", url,
    ]

    result = CliRunner().invoke(main, args)

    assert result.exit_code == 0, result.output
    assert "Patch DML7 (seed).sql will be run." in result.output
    assert "Files b.xml is new." in result.output
    assert "a.xml" not in result.output
    assert "1 pending patches" in result.output


def test_compare_fail_on_drift(tmp_path):
    url = make_database(tmp_path)
    args = [
        "compare",
        "-d", str(_make_code_source(tmp_path)),
        "--definitions", str(_make_definitions(tmp_path)),
        "--config", str(_make_config(tmp_path)),
        "--url", url,
        "--fail-on-drift",
    ]

    result = CliRunner().invoke(main, args)
    assert result.exit_code == 1


def test_compare_requires_connection_details(tmp_path):
    result = CliRunner().invoke(main, ["compare", "-d", str(tmp_path), "--host", "db.local"])
    assert result.exit_code == 2
    assert "required" in result.output


def test_compare_unreachable_database(tmp_path):
    url = f"sqlite+pysqlite:///{tmp_path / 'missing' / 'audit.db'}"
    result = CliRunner().invoke(main, ["compare", "-d", str(tmp_path), "--url", url])
    assert result.exit_code == 1
    assert "Connection to the database failed" in result.output


def test_definitions_command(tmp_path):
    definitions = _make_definitions(tmp_path)
    result = CliRunner().invoke(main, ["definitions", "--definitions", str(definitions)])
    assert result.exit_code == 0
    assert "1 loaded" in result.output


def test_patches_command(tmp_path):
    code_source = _make_code_source(tmp_path)
    patches = code_source / "DatabasePatches"
    (patches / "Release1" / "bad.sql").write_text("")

    result = CliRunner().invoke(main, ["patches", str(patches)])

    assert result.exit_code == 0
    assert "DDL" in result.output
    assert "naming guidelines" in result.output


def test_normalize_markup(tmp_path):
    path = tmp_path / "a.xml"
    path.write_text('<?xml version="1.0"?>\n<a>\n  <b/> <!-- c -->\n</a>\n')
    result = CliRunner().invoke(main, ["normalize", str(path)])
    assert result.exit_code == 0
    assert result.output.strip() == "<a><b/></a>"


def test_normalize_procedural(tmp_path):
    path = tmp_path / "FOO.pks"
    path.write_text("CREATE OR REPLACE PACKAGE FOO IS\n  body\nEND;\n/\n")
    result = CliRunner().invoke(main, ["normalize", str(path), "--entity", "FOO"])
    assert result.exit_code == 0
    assert result.output.strip() == "body\nEND;"


def test_configure_logging_levels():
    sink = io.StringIO()
    handler = configure_logging(verbose=False, sink=sink)
    logger.debug("hidden")
    logger.warning("shown")
    logger.remove(handler)
    assert "hidden" not in sink.getvalue()
    assert "shown" in sink.getvalue()

    sink = io.StringIO()
    handler = configure_logging(verbose=True, sink=sink)
    logger.debug("now visible")
    logger.remove(handler)
    assert "now visible" in sink.getvalue()
