"""Tests for loading folder definitions."""

import tempfile
from pathlib import Path

import pytest
import yaml

from gman.config.definitions import definition_from_dict, load_definition, load_definitions
from gman.errors import DefinitionError
from gman.models.audit import FolderDefinition, IssueKind

VALID = {
    "name": "Reports",
    "directory": "ReportDefinitions",
    "extension": "*.xml",
    "load_statement": "SELECT r.xml_data FROM reportmgr.reports r WHERE r.file_name = :filename",
}

LEGACY_XML = """<?xml version="1.0" encoding="utf-8"?>
<FolderDefinition xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
  <Name>Menus</Name>
  <Directory>MenuDefinitions</Directory>
  <Extension>*.xml</Extension>
  <LoadStatement>SELECT m.xml_data FROM menus m WHERE m.file_name = :filename</LoadStatement>
</FolderDefinition>
"""


def _write_yaml(directory: Path, name: str, data) -> Path:
    path = directory / name
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


def test_definition_from_dict():
    definition = definition_from_dict(VALID)
    assert definition == FolderDefinition(
        name="Reports",
        directory="ReportDefinitions",
        extension="*.xml",
        lookup_statement=VALID["load_statement"],
    )


def test_camel_case_statement_key():
    data = dict(VALID)
    data["loadStatement"] = data.pop("load_statement")
    assert definition_from_dict(data).lookup_statement == VALID["load_statement"]


@pytest.mark.parametrize("missing", ["name", "directory", "extension", "load_statement"])
def test_missing_field(missing):
    data = {k: v for k, v in VALID.items() if k != missing}
    with pytest.raises(DefinitionError) as excinfo:
        definition_from_dict(data)
    assert missing in str(excinfo.value)


def test_blank_field():
    with pytest.raises(DefinitionError):
        definition_from_dict({**VALID, "directory": "   "})


def test_statement_needs_filename_parameter():
    with pytest.raises(DefinitionError) as excinfo:
        definition_from_dict({**VALID, "load_statement": "SELECT xml_data FROM reports"})
    assert ":filename" in str(excinfo.value)


def test_not_a_mapping():
    with pytest.raises(DefinitionError):
        definition_from_dict(["name", "directory"])


def test_load_legacy_xml():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "menus.xml"
        path.write_text(LEGACY_XML)
        definition = load_definition(path)
        assert definition.name == "Menus"
        assert definition.directory == "MenuDefinitions"
        assert definition.lookup_statement.endswith(":filename")


def test_load_definitions_keeps_going_past_bad_files():
    with tempfile.TemporaryDirectory() as tmpdir:
        directory = Path(tmpdir)
        _write_yaml(directory, "b_reports.yaml", VALID)
        _write_yaml(directory, "c_broken.yaml", {"name": "Broken"})
        (directory / "a_menus.xml").write_text(LEGACY_XML)
        (directory / "d_invalid.yml").write_text("{{invalid yaml::: [")
        (directory / "README.md").write_text("ignored")

        loaded = load_definitions(directory)

        assert [d.name for d in loaded.definitions] == ["Menus", "Reports"]
        assert len(loaded.issues) == 2
        assert all(i.kind == IssueKind.INVALID_DEFINITION for i in loaded.issues)
        assert "c_broken.yaml" in loaded.issues[0].subject
        assert "Invalid YAML" in loaded.issues[1].message


def test_load_definitions_missing_directory():
    with tempfile.TemporaryDirectory() as tmpdir:
        loaded = load_definitions(Path(tmpdir) / "gman")
        assert loaded.definitions == []
        assert loaded.issues[0].kind == IssueKind.MISSING_DIRECTORY
