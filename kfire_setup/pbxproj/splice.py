"""Insertion buffer and structural lookups over raw pbxproj text.

Lookups never edit text: they return offsets into the original content, and
the SpliceBuffer applies every recorded insertion in a single render pass.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from kfire_setup.pbxproj.document import begin_marker, end_marker

Span = Tuple[int, int]

_CLOSERS = {"{": "}", "(": ")"}


class SpliceBuffer:
    """Collect insertions against immutable source text."""

    def __init__(self, text: str):
        self._text = text
        self._inserts: List[Tuple[int, int, str]] = []

    @property
    def source(self) -> str:
        return self._text

    def insert(self, offset: int, snippet: str):
        if not 0 <= offset <= len(self._text):
            raise IndexError(f"Insertion offset {offset} outside text of length {len(self._text)}")
        if snippet:
            self._inserts.append((offset, len(self._inserts), snippet))

    def __len__(self) -> int:
        return len(self._inserts)

    def render(self) -> str:
        pieces: List[str] = []
        cursor = 0
        for offset, _, snippet in sorted(self._inserts):
            pieces.append(self._text[cursor:offset])
            pieces.append(snippet)
            cursor = offset
        pieces.append(self._text[cursor:])
        return "".join(pieces)


@dataclass(frozen=True)
class ListSpan:
    """A `key = ( ... )` list: offsets of both parentheses and the key's indent."""

    open_index: int
    close_index: int
    indent: str


def detect_newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _skip_string(text: str, index: int) -> int:
    """Return the index just past the quoted string starting at `index`."""
    i = index + 1
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == '"':
            return i + 1
        i += 1
    return len(text)


def matching_close(text: str, open_index: int) -> Optional[int]:
    """Index of the bracket closing the one at `open_index`, skipping strings and comments."""
    opener = text[open_index]
    closer = _CLOSERS[opener]
    depth = 0
    i = open_index
    while i < len(text):
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                return None
            i = end + 2
            continue
        char = text[i]
        if char == '"':
            i = _skip_string(text, i)
            continue
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def section_span(text: str, kind: str) -> Optional[Span]:
    start = text.find(begin_marker(kind))
    if start == -1:
        return None
    end = text.find(end_marker(kind), start)
    if end == -1:
        return None
    return start, end


def _bounds(text: str, within: Optional[Span]) -> Span:
    return within if within is not None else (0, len(text))


def find_object(text: str, object_id: str, within: Optional[Span] = None) -> Optional[Span]:
    """Span of the `{...}` body defining `object_id` (both braces included).

    Exactly one definition must exist inside `within`.
    """
    start, end = _bounds(text, within)
    pattern = re.compile(
        r"^[ \t]*" + re.escape(object_id) + r"[ \t]*(?:/\*.*?\*/[ \t]*)?=[ \t]*\{",
        re.MULTILINE,
    )
    matches = list(pattern.finditer(text, start, end))
    if len(matches) != 1:
        return None
    open_index = matches[0].end() - 1
    close_index = matching_close(text, open_index)
    if close_index is None:
        return None
    return open_index, close_index + 1


def find_list(text: str, key: str, within: Optional[Span] = None) -> Optional[ListSpan]:
    start, end = _bounds(text, within)
    pattern = re.compile(r"^([ \t]*)" + re.escape(key) + r"[ \t]*=[ \t]*\(", re.MULTILINE)
    match = pattern.search(text, start, end)
    if match is None:
        return None
    open_index = match.end() - 1
    close_index = matching_close(text, open_index)
    if close_index is None or close_index >= end:
        return None
    return ListSpan(open_index=open_index, close_index=close_index, indent=match.group(1))


def find_anchor_line(text: str, pattern: re.Pattern, within: Optional[Span] = None) -> Optional[Tuple[int, str]]:
    """Start offset and indent of the only line matching `pattern`.

    The pattern must capture the line's leading whitespace as group 1.
    """
    start, end = _bounds(text, within)
    matches = list(pattern.finditer(text, start, end))
    if len(matches) != 1:
        return None
    return matches[0].start(), matches[0].group(1)


def list_append(text: str, span: ListSpan, entries: List[str], newline: str) -> Tuple[int, str]:
    """Offset and snippet that append `entries` to an existing list."""
    item_indent = span.indent + "\t"
    items = "".join(f"{newline}{item_indent}{entry}," for entry in entries)
    inner = text[span.open_index + 1:span.close_index]
    if not inner.strip():
        if "\n" not in inner:
            items += newline + span.indent
        return span.open_index + 1, items
    last = inner.rstrip()
    separator = "" if last.endswith(",") else ","
    return span.open_index + 1 + len(last), separator + items


def list_block(key: str, entries: List[str], indent: str, newline: str) -> str:
    """A complete `key = ( ... );` block, one entry per line."""
    lines = [f"{indent}{key} = ("]
    lines.extend(f"{indent}\t{entry}," for entry in entries)
    lines.append(f"{indent});")
    return newline.join(lines) + newline


__all__ = [
    "ListSpan",
    "SpliceBuffer",
    "detect_newline",
    "find_anchor_line",
    "find_list",
    "find_object",
    "list_append",
    "list_block",
    "matching_close",
    "section_span",
]
