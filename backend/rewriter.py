"""Alias matching and substitution into ``[[target|display]]`` links.

Each alias is applied as its own pass over the current text, longest alias
first, so a span wrapped by a longer alias is already a link by the time a
shorter alias contained in it is considered.

An occurrence on a line is left alone when it is the target part of a link
(preceded by ``[[``) or when anything after it on the same line is a ``|`` or
a ``]]``. The second rule is a line-level heuristic: it also skips mentions
that sit before an unrelated pipe, such as in a markdown table row.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from models import AliasLink

LINK_OPEN = "[["
LINK_CLOSE = "]]"
LINK_PIPE = "|"

_SELECTED_LINK_RE = re.compile(r"\[\[(.*)\|(.*)\]\]")


def rewrite(text: str, aliases: Iterable[AliasLink], skip_headers: bool = True) -> str:
    """Wrap unlinked alias mentions in ``text`` into links.

    Args:
        text: Document (or selection) text.
        aliases: (alias, target) pairs, already ordered longest alias first.
        skip_headers: Leave lines starting with ``#`` untouched.

    Returns:
        The rewritten text; unchanged when nothing qualifies.
    """
    if not text:
        return text

    lines = text.split("\n")
    for link in aliases:
        if not link.alias:
            continue
        for index, line in enumerate(lines):
            if skip_headers and line.startswith("#"):
                continue
            lines[index] = link_line(line, link.alias, link.target)
    return "\n".join(lines)


def link_line(line: str, alias: str, target: str) -> str:
    """Wrap at most one occurrence of ``alias`` on a single line.

    The occurrence chosen is the rightmost one that is not already part of a
    link, which keeps a second pass over the result from linking anything.
    """
    size = len(alias)
    start = line.rfind(alias)
    while start != -1:
        tail = line[start + size:]
        if LINK_PIPE in tail or LINK_CLOSE in tail:
            # Every earlier occurrence sees this same tail.
            return line
        if not line[:start].endswith(LINK_OPEN):
            matched = line[start:start + size]
            return f"{line[:start]}{format_link(target, matched)}{tail}"
        start = line.rfind(alias, 0, start + size - 1)
    return line


def format_link(target: str, display: str) -> str:
    return f"{LINK_OPEN}{target}{LINK_PIPE}{display}{LINK_CLOSE}"


def parse_link(selection: str) -> Optional[Tuple[str, str]]:
    """Extract ``(target, alias)`` from the first ``[[target|alias]]`` in a selection."""
    match = _SELECTED_LINK_RE.search(selection or "")
    if not match:
        return None
    return match.group(1), match.group(2)


def linked_spans(line: str) -> List[Tuple[int, int]]:
    """Half-open ``(start, end)`` spans of the ``[[...]]`` links on a line."""
    spans: List[Tuple[int, int]] = []
    start = line.find(LINK_OPEN)
    while start != -1:
        end = line.find(LINK_CLOSE, start + len(LINK_OPEN))
        if end == -1:
            break
        end += len(LINK_CLOSE)
        spans.append((start, end))
        start = line.find(LINK_OPEN, end)
    return spans


def count_links(text: str) -> int:
    return sum(len(linked_spans(line)) for line in (text or "").split("\n"))
