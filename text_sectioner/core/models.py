from __future__ import annotations

"""Shared data structures used across the Text Sectioner core.

This module is intentionally free of UI / I/O code so that the contained
objects can be reused in any context (unit-tests, CLI, GUI, etc.).
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Tuple, Union

from text_sectioner.core.utils import generate_section_id

__all__ = ["ContentItem", "SectionNode", "ForestSnapshot"]


@dataclass
class SectionNode:
    """A labeled section holding an ordered mix of text runs and child sections.

    Attributes
    ----------
    id
        Opaque identifier, unique across the forest and never reused.
    label
        Optional display name; an empty string means "no label".
    content
        Ordered content items. Each item is either a text run (``str``) or a
        child :class:`SectionNode`. An empty list is a leaf with no text yet.
    """

    id: str = field(default_factory=generate_section_id)
    label: str = ""
    content: List["ContentItem"] = field(default_factory=list)

    def children(self) -> List["SectionNode"]:
        """Return the child sections, skipping text runs."""
        return [item for item in self.content if isinstance(item, SectionNode)]

    def text_runs(self) -> List[str]:
        """Return the node's own text runs in order."""
        return [item for item in self.content if isinstance(item, str)]

    def has_children(self) -> bool:
        """Return True if at least one content item is a child section."""
        return any(isinstance(item, SectionNode) for item in self.content)

    def depth_first(self) -> Iterator["SectionNode"]:
        """Traverse the subtree depth-first, yielding self then descendants.

        Uses an explicit stack, so arbitrarily deep trees are fine.
        """
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children()))

    def plain_text(self) -> str:
        """Concatenate all text of the subtree in document order."""
        parts = []
        stack: List["ContentItem"] = list(reversed(self.content))
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
            else:
                stack.extend(reversed(item.content))
        return "".join(parts)

    def is_blank(self) -> bool:
        """Return True if the subtree holds no non-whitespace text.

        ``[]`` and ``[""]`` are both blank, as is a node whose only children
        are themselves blank.
        """
        return not any(run.strip() for node in self.depth_first() for run in node.text_runs())

    def clone(self) -> "SectionNode":
        """Return a deep copy of the subtree that keeps every id."""
        copy = SectionNode(id=self.id, label=self.label)
        pending = [(self, copy)]
        while pending:
            source, target = pending.pop()
            for item in source.content:
                if isinstance(item, SectionNode):
                    twin = SectionNode(id=item.id, label=item.label)
                    pending.append((item, twin))
                    target.content.append(twin)
                else:
                    target.content.append(item)
        return copy


ContentItem = Union[str, SectionNode]


@dataclass(frozen=True)
class ForestSnapshot:
    """Published, read-only view of the forest.

    The editing service never mutates the nodes reachable from a snapshot once
    it has been published; every edit produces a new snapshot with a higher
    ``version``.
    """

    roots: Tuple[SectionNode, ...]
    version: int = 0

    def iter_nodes(self) -> Iterator[SectionNode]:
        """Yield every node of the forest in pre-order."""
        for root in self.roots:
            yield from root.depth_first()

    def __len__(self) -> int:
        return len(self.roots)
