from __future__ import annotations

"""Simple reusable helper functions.

These helpers are side-effect-free and contain no I/O; they are shared by the
editing service, the XML generator and the XML importer.
"""

from typing import Iterator, List, Optional, Tuple, TYPE_CHECKING
import logging
import uuid

if TYPE_CHECKING:
    from text_sectioner.core.models import ContentItem, SectionNode

__all__ = [
    "generate_section_id",
    "escape_xml",
    "coalesce_text_runs",
    "has_adjacent_text_runs",
    "iter_with_parent",
    "find_node",
    "find_parent",
    "collect_ids",
]

logger = logging.getLogger(__name__)

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
)


def generate_section_id() -> str:
    """Generate a globally unique id for a section node.

    Both the editing service and the importer draw from this generator, so ids
    never collide across repeated parses and edits.
    """
    return f"node-{uuid.uuid4().hex}"


def escape_xml(text: str) -> str:
    """Escape ``& < > "`` for use in element text and attribute values.

    The ampersand is replaced first so already-produced entities are not
    double-escaped.
    """
    for raw, entity in _XML_ESCAPES:
        text = text.replace(raw, entity)
    return text


def coalesce_text_runs(content: List["ContentItem"]) -> List["ContentItem"]:
    """Return *content* with every group of adjacent text runs joined.

    Runs are concatenated directly (no separator). Child nodes are kept as-is
    and in order. The input list is not modified.
    """
    merged: List["ContentItem"] = []
    for item in content:
        if isinstance(item, str) and merged and isinstance(merged[-1], str):
            merged[-1] = merged[-1] + item
        else:
            merged.append(item)
    return merged


def has_adjacent_text_runs(content: List["ContentItem"]) -> bool:
    """Return True if two neighbouring items of *content* are both text runs."""
    return any(
        isinstance(a, str) and isinstance(b, str)
        for a, b in zip(content, content[1:])
    )


# ---------------------------------------------------------------------------
# Tree lookup
# ---------------------------------------------------------------------------


def iter_with_parent(
    roots, parent: Optional["SectionNode"] = None
) -> Iterator[Tuple["SectionNode", Optional["SectionNode"]]]:
    """Yield ``(node, parent)`` pairs in pre-order; roots have parent None.

    A node's children are read after the pair is yielded, so callers may
    rewrite ``node.content`` while iterating.
    """
    stack = [(node, parent) for node in reversed(list(roots))]
    while stack:
        node, owner = stack.pop()
        yield node, owner
        stack.extend((child, node) for child in reversed(node.children()))


def find_node(roots, node_id: str) -> Optional["SectionNode"]:
    """Pre-order depth-first search for the node with *node_id*."""
    for node, _parent in iter_with_parent(roots):
        if node.id == node_id:
            return node
    return None


def find_parent(roots, node_id: str) -> Tuple[Optional["SectionNode"], bool]:
    """Locate the parent of *node_id*.

    Returns ``(parent, found)``; *parent* is None for roots, and *found* tells
    a root apart from an unknown id.
    """
    for node, parent in iter_with_parent(roots):
        if node.id == node_id:
            return parent, True
    return None, False


def collect_ids(roots) -> List[str]:
    """Return every node id of the forest in pre-order (duplicates included)."""
    return [node.id for node, _parent in iter_with_parent(roots)]
