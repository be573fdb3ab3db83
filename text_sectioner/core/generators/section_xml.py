from __future__ import annotations

"""Render a section forest as ``<section>`` XML text.

The output layout is fixed so that embedding front-ends (copy, download) can
byte-compare it:

* a node without visible child sections is one line,
  ``<section label="L">text</section>``;
* a node with visible child sections opens on its own line, lists its text
  runs and children one indentation level deeper, and closes directly after
  the last of them;
* blank nodes (no non-whitespace text in the subtree) are left out entirely;
* text runs left next to each other by an omitted node share one line,
  separated by a space.

Rendering is pure: no configuration is read here, callers pass ``indent``.
"""

import logging
from typing import Iterable, Iterator, List, Optional

from text_sectioner.core.models import ContentItem, SectionNode
from text_sectioner.core.utils import escape_xml

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_INDENT", "serialize_sections", "render_section"]

DEFAULT_INDENT = "  "

_DONE = object()


class _OpenSection:
    """A multi-line section whose content is still being rendered."""

    __slots__ = ("items", "pad", "after_text")

    def __init__(self, items: Iterator[ContentItem], pad: str):
        self.items = items
        self.pad = pad
        self.after_text = False


def _open_tag(node: SectionNode) -> str:
    if node.label:
        return f'<section label="{escape_xml(node.label)}">'
    return "<section>"


def _single_line(node: SectionNode, pad: str) -> str:
    runs = [run.strip() for run in node.text_runs()]
    text = " ".join(run for run in runs if run)
    return f"{pad}{_open_tag(node)}{escape_xml(text)}</section>"


def _enter(node: SectionNode, pad: str, lines: List[str], stack: List[_OpenSection]) -> None:
    if all(child.is_blank() for child in node.children()):
        lines.append(_single_line(node, pad))
        return
    lines.append(pad + _open_tag(node))
    stack.append(_OpenSection(iter(node.content), pad))


def render_section(node: SectionNode, depth: int = 0, indent: str = DEFAULT_INDENT) -> Optional[str]:
    """Render *node* at nesting *depth*, or return None if it is blank."""
    if node.is_blank():
        return None

    lines: List[str] = []
    stack: List[_OpenSection] = []
    _enter(node, indent * depth, lines, stack)

    while stack:
        frame = stack[-1]
        item = next(frame.items, _DONE)
        if item is _DONE:
            stack.pop()
            lines[-1] += "</section>"
        elif isinstance(item, str):
            text = item.strip()
            if not text:
                continue
            if frame.after_text:
                lines[-1] += " " + escape_xml(text)
            else:
                lines.append(frame.pad + indent + escape_xml(text))
                frame.after_text = True
        elif not item.is_blank():
            frame.after_text = False
            _enter(item, frame.pad + indent, lines, stack)

    return "\n".join(lines)


def serialize_sections(roots: Iterable[SectionNode], indent: str = DEFAULT_INDENT) -> str:
    """Serialize the forest *roots* to XML text.

    Parameters
    ----------
    roots
        Top-level nodes in document order.
    indent
        Indentation unit per nesting level, two spaces by default.

    Returns
    -------
    str
        One top-level ``<section>`` per non-blank root, joined by newlines,
        without a trailing newline. An all-blank forest yields ``""``.
    """
    rendered = [render_section(root, 0, indent) for root in roots]
    parts = [chunk for chunk in rendered if chunk is not None]
    logger.debug("Serialized %d of %d root section(s)", len(parts), len(rendered))
    return "\n".join(parts)
