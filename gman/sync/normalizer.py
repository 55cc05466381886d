"""Text normalization — reduce source blobs to a canonical form for equality checks.

Two pipelines are provided:

- ``normalize_procedural`` for stored-procedure style source (packages, views,
  triggers...). Strips comments and the ``CREATE OR REPLACE ... IS`` header so
  that a file and the text stored in the database compare equal.
- ``normalize_markup`` for XML-shaped payloads. Strips every whitespace
  character, comments and processing instructions.

Each pass is a plain ``str -> str`` function and the pipelines apply them in a
fixed order; later passes rely on the output of earlier ones. No pass raises:
when an expected token is missing the pass leaves the text alone.

Known limitation: the declaration header pass looks for the entity name
anywhere before the first ``AS``/``IS`` token, so a name that appears earlier in
an unrelated string literal makes it strip more than the header.
"""

from __future__ import annotations

import re
import string
from collections.abc import Callable, Sequence
from functools import partial

Pass = Callable[[str], str]

_LINE_COMMENT = re.compile(r"^(.*?) *--.*$", re.MULTILINE)
_LEADING_CLAUSE = re.compile(r".+?\s(AS|IS)\s", re.MULTILINE)
_COMMENT_LINE = re.compile(r"^--.*?[\r\n]+", re.MULTILINE)
_WHITESPACE = re.compile(r"\s")
_MARKUP_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_PROCESSING_INSTRUCTION = re.compile(r"<\?.*?\?>", re.DOTALL)

STATEMENT_TERMINATOR = "/"


# ── Procedural passes ────────────────────────────────────────────────


def trim_lines(text: str) -> str:
    """Trim spaces and tabs around every line and drop blank lines."""
    lines = (line.strip(" \t") for line in text.splitlines())
    return "\n".join(line for line in lines if line.strip())


def strip_line_comments(text: str) -> str:
    """Remove ``--`` comments through the end of each line."""
    return trim_lines(_LINE_COMMENT.sub(r"\1", text))


def strip_declaration_header(text: str, entity_name: str) -> str:
    """Remove everything up to the first ``AS``/``IS`` after the entity name.

    Matches across lines and only once, from the start of the text. Does
    nothing when the name is empty or not present.
    """
    if not entity_name or entity_name not in text:
        return text
    pattern = re.compile(
        r"^.*?" + re.escape(entity_name) + r".*?\s(AS|IS)\s", re.DOTALL
    )
    return pattern.sub("", text, count=1)


def strip_leading_clauses(text: str) -> str:
    """Remove any remaining ``... AS``/``... IS`` clause on each line."""
    return _LEADING_CLAUSE.sub("", text)


def strip_terminator(text: str) -> str:
    """Trim the text and drop every trailing statement terminator."""
    return text.rstrip(STATEMENT_TERMINATOR + string.whitespace).strip()


def strip_comment_lines(text: str) -> str:
    """Remove whole lines that start with ``--``."""
    return _COMMENT_LINE.sub("", text)


# ── Markup passes ────────────────────────────────────────────────────


def strip_whitespace(text: str) -> str:
    return _WHITESPACE.sub("", text)


def strip_markup_comments(text: str) -> str:
    return _MARKUP_COMMENT.sub("", text)


def strip_processing_instructions(text: str) -> str:
    return _PROCESSING_INSTRUCTION.sub("", text)


MARKUP_PASSES: tuple[Pass, ...] = (
    strip_whitespace,
    strip_markup_comments,
    strip_processing_instructions,
)


def procedural_passes(entity_name: str) -> tuple[Pass, ...]:
    """Return the ordered procedural pipeline for the given entity."""
    return (
        trim_lines,
        strip_line_comments,
        partial(strip_declaration_header, entity_name=entity_name),
        strip_leading_clauses,
        strip_terminator,
        strip_comment_lines,
        trim_lines,
    )


def apply_passes(text: str, passes: Sequence[Pass]) -> str:
    """Run the pipeline until its output stops changing.

    A removal can splice together text that matches an earlier pass, so a
    single run is not always a fixed point. Every pass only deletes
    characters, which bounds the number of rounds.
    """
    while True:
        result = text
        for step in passes:
            result = step(result)
        if result == text:
            return result
        text = result


def normalize_procedural(text: str, entity_name: str) -> str:
    """Canonical form of procedural source for the named entity."""
    return apply_passes(text or "", procedural_passes(entity_name))


def normalize_markup(text: str) -> str:
    """Canonical form of a markup payload, flattened to one string."""
    return apply_passes(text or "", MARKUP_PASSES)


def same_procedural(left: str, right: str, entity_name: str) -> bool:
    return normalize_procedural(left, entity_name) == normalize_procedural(right, entity_name)


def same_markup(left: str, right: str) -> bool:
    return normalize_markup(left) == normalize_markup(right)
