r"""Folder definitions — load the folder-to-statement bindings from disk.

Each definition lives in its own file inside the definitions directory::

    name: Reports
    directory: ReportDefinitions
    extension: "*.xml"
    load_statement: >
      SELECT r.xml_data FROM reportmgr.reports r WHERE r.file_name = :filename

The legacy XML layout (``<FolderDefinition>`` with ``Name``, ``Directory``,
``Extension`` and ``LoadStatement`` elements) is read as well. A broken file
fails on its own; the other definitions still load.

Load statements are run through SQLAlchemy's ``text()``, which treats every
``:word`` as a bind parameter, even inside a quoted literal. Write a literal
colon as ``\:``, e.g. ``TO_CHAR(d, 'HH24\:MI')``.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from gman.errors import DefinitionError
from gman.models.audit import ConfigurationIssue, FolderDefinition, IssueKind

YAML_SUFFIXES = {".yaml", ".yml"}
XML_SUFFIXES = {".xml"}

REQUIRED_FIELDS = ("name", "directory", "extension", "load_statement")
FILENAME_PARAMETER = re.compile(r":filename\b")

_FIELD_ALIASES = {
    "loadStatement": "load_statement",
    "Name": "name",
    "Directory": "directory",
    "Extension": "extension",
    "LoadStatement": "load_statement",
}


@dataclass
class DefinitionSet:
    """Definitions that loaded, plus one issue per file that did not."""

    definitions: list[FolderDefinition] = field(default_factory=list)
    issues: list[ConfigurationIssue] = field(default_factory=list)


def load_definitions(definitions_dir: str | Path) -> DefinitionSet:
    """Load every definition file in ``definitions_dir``, sorted by file name."""
    directory = Path(definitions_dir)
    result = DefinitionSet()

    if not directory.is_dir():
        result.issues.append(
            ConfigurationIssue(
                kind=IssueKind.MISSING_DIRECTORY,
                subject=str(directory),
                message=f"The definitions folder {directory} could not be found",
            )
        )
        return result

    for path in sorted(directory.iterdir()):
        if not path.is_file() or path.suffix.lower() not in YAML_SUFFIXES | XML_SUFFIXES:
            continue
        try:
            result.definitions.append(load_definition(path))
        except DefinitionError as e:
            result.issues.append(
                ConfigurationIssue(
                    kind=IssueKind.INVALID_DEFINITION,
                    subject=str(path),
                    message=str(e),
                )
            )

    return result


def load_definition(path: str | Path) -> FolderDefinition:
    """Load a single definition file.

    Raises:
        DefinitionError: If the file cannot be parsed or a field is missing.
    """
    path = Path(path)
    if path.suffix.lower() in XML_SUFFIXES:
        data = _read_xml(path)
    else:
        data = _read_yaml(path)
    return definition_from_dict(data, source=str(path))


def definition_from_dict(data: dict, source: str = "<definition>") -> FolderDefinition:
    """Build a definition from a mapping, validating every field."""
    if not isinstance(data, dict):
        raise DefinitionError(source, "Definition must be a mapping")

    fields = {_FIELD_ALIASES.get(key, key): value for key, value in data.items()}
    for field_name in REQUIRED_FIELDS:
        value = fields.get(field_name)
        if not isinstance(value, str) or not value.strip():
            raise DefinitionError(source, f"Definition missing required field: {field_name}")

    statement = fields["load_statement"].strip()
    if not FILENAME_PARAMETER.search(statement):
        raise DefinitionError(source, "load_statement must take a :filename parameter")

    return FolderDefinition(
        name=fields["name"].strip(),
        directory=fields["directory"].strip(),
        extension=fields["extension"].strip(),
        lookup_statement=statement,
    )


def _read_yaml(path: Path) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise DefinitionError(str(path), f"Invalid YAML: {e}") from e


def _read_xml(path: Path) -> dict:
    try:
        root = ET.parse(path).getroot()
    except (OSError, ET.ParseError) as e:
        raise DefinitionError(str(path), f"Invalid XML: {e}") from e
    if root.tag != "FolderDefinition":
        raise DefinitionError(str(path), f"Unexpected root element <{root.tag}>")
    return {child.tag: child.text or "" for child in root}
