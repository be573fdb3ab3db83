from __future__ import annotations

"""Service layer for structural edits on the in-memory section forest.

This module provides a UI-agnostic, testable service that owns the forest of
sections and exposes the editing operations a front-end maps its key bindings
to (split into child or sibling, merge, delete, relabel, promote/demote).

Scope and guarantees:
- Operates purely in-memory, no file I/O nor UI imports.
- Every edit mutates a copy of the current forest and publishes it as a
  new :class:`ForestSnapshot`; published snapshots are never touched again.
- Unknown node ids are not errors: operations return None/False and log a
  warning instead of raising.
- After every structural edit no two adjacent text runs remain, and the
  forest holds at least one root.

Examples
--------
Basic usage:

    service = SectionEditingService()
    root_id = service.roots[0].id
    service.update_text(root_id, 0, "Hello World")
    child_id = service.split_to_child(root_id, 0, 5)
    print(service.xml_output)

"""

from collections import Counter
import logging
from typing import List, Literal, Optional, Sequence, Tuple

from text_sectioner.core.generators import serialize_sections
from text_sectioner.core.importers import parse_sections
from text_sectioner.core.models import ContentItem, ForestSnapshot, SectionNode
from text_sectioner.core.utils import (
    coalesce_text_runs,
    collect_ids,
    find_node,
    find_parent,
    iter_with_parent,
)


__all__ = ["SectionEditingService"]

logger = logging.getLogger(__name__)

# (node, parent, list holding the node): the list is parent.content or the forest
_Location = Tuple[SectionNode, Optional[SectionNode], List[ContentItem]]


class SectionEditingService:
    """Owns the section forest of one editing session.

    The current state is exposed as an immutable :class:`ForestSnapshot`.
    Consumers can cheaply detect changes by comparing ``version`` (or the
    snapshot identity) instead of walking the tree.

    Notes
    -----
    The service is not thread-safe. One instance serves one editing session and
    callers serialize their edits.
    """

    def __init__(self) -> None:
        self._snapshot = ForestSnapshot(roots=(self._fresh_root(),), version=0)
        self._xml_cache: Optional[Tuple[int, str]] = None

    # -------------------------------------------------------------------------
    # Snapshot access
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> ForestSnapshot:
        return self._snapshot

    @property
    def roots(self) -> Tuple[SectionNode, ...]:
        return self._snapshot.roots

    @property
    def version(self) -> int:
        return self._snapshot.version

    @property
    def xml_output(self) -> str:
        """XML serialization of the current snapshot, recomputed on change."""
        if self._xml_cache is None or self._xml_cache[0] != self._snapshot.version:
            self._xml_cache = (self._snapshot.version, serialize_sections(self._snapshot.roots))
        return self._xml_cache[1]

    def find_node(self, node_id: str) -> Optional[SectionNode]:
        """Return the node with *node_id* in the current snapshot, or None."""
        return find_node(self._snapshot.roots, node_id)

    def find_parent(self, node_id: str) -> Optional[SectionNode]:
        """Return the parent of *node_id*; None for roots and unknown ids."""
        parent, _found = find_parent(self._snapshot.roots, node_id)
        return parent

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @staticmethod
    def create(text: str, label: str = "") -> SectionNode:
        """Build a detached node holding *text* (no run at all when empty)."""
        return SectionNode(label=label or "", content=[text] if text else [])

    def update_text(self, node_id: str, content_index: int, text: str) -> bool:
        """Replace the text run at *content_index*, or append one at the end.

        Returns False without changing anything when the node is unknown, the
        index is out of range, or the item at the index is a child section.
        """
        logger.debug("Edit: update_text node=%s index=%d", node_id, content_index)
        roots = self._working_copy()
        loc = self._locate(roots, node_id)
        if loc is None:
            logger.warning("Edit FAIL: update_text node_not_found node=%s", node_id)
            return False

        node = loc[0]
        if content_index == len(node.content):
            node.content.append(text)
        elif 0 <= content_index < len(node.content) and isinstance(node.content[content_index], str):
            node.content[content_index] = text
        else:
            logger.warning("Edit FAIL: update_text invalid_index node=%s index=%d", node_id, content_index)
            return False

        node.content = coalesce_text_runs(node.content)
        self._publish(roots)
        return True

    def update_label(self, node_id: str, label: str) -> bool:
        """Set the label of *node_id*; False if the node is unknown."""
        logger.debug("Edit: update_label node=%s", node_id)
        roots = self._working_copy()
        loc = self._locate(roots, node_id)
        if loc is None:
            logger.warning("Edit FAIL: update_label node_not_found node=%s", node_id)
            return False
        loc[0].label = label or ""
        self._publish(roots)
        return True

    def split_to_child(self, node_id: str, content_index: int, cursor_pos: int) -> Optional[str]:
        """Split the text run at *cursor_pos*; the tail becomes a new child.

        The run keeps the text before the cursor (even if empty) and is followed
        by a new child section holding the text after it (even if empty). When
        the item at *content_index* is a child section, an empty child is
        inserted right after it instead.

        Returns the new child's id, or None if the node is unknown or the index
        is out of range.
        """
        logger.info("Edit: split_to_child node=%s index=%d pos=%d", node_id, content_index, cursor_pos)
        roots = self._working_copy()
        loc = self._locate(roots, node_id)
        if loc is None:
            logger.warning("Edit FAIL: split_to_child node_not_found node=%s", node_id)
            return None

        node = loc[0]
        if 0 <= content_index < len(node.content) and isinstance(node.content[content_index], SectionNode):
            new_child = SectionNode(content=[""])
            node.content.insert(content_index + 1, new_child)
        else:
            halves = self._split_run(node, content_index, cursor_pos)
            if halves is None:
                logger.warning("Edit FAIL: split_to_child invalid_index node=%s index=%d", node_id, content_index)
                return None
            before, after = halves
            new_child = SectionNode(content=[after])
            node.content[content_index:content_index + 1] = [before, new_child]
            node.content = coalesce_text_runs(node.content)

        self._publish(roots)
        logger.info("Edit OK: split_to_child node=%s new=%s", node_id, new_child.id)
        return new_child.id

    def split_to_sibling(self, node_id: str, content_index: int, cursor_pos: int) -> Optional[str]:
        """Split the text run at *cursor_pos*; the tail becomes the next sibling.

        Content items following the split run move along with the tail so the
        document order is preserved. Returns the new sibling's id, or None if
        the node is unknown or the index is out of range.
        """
        logger.info("Edit: split_to_sibling node=%s index=%d pos=%d", node_id, content_index, cursor_pos)
        roots = self._working_copy()
        loc = self._locate(roots, node_id)
        if loc is None:
            logger.warning("Edit FAIL: split_to_sibling node_not_found node=%s", node_id)
            return None

        node, _parent, siblings = loc
        if 0 <= content_index < len(node.content) and isinstance(node.content[content_index], SectionNode):
            moved = node.content[content_index + 1:]
            del node.content[content_index + 1:]
            new_sibling = SectionNode(content=coalesce_text_runs([""] + moved))
        else:
            halves = self._split_run(node, content_index, cursor_pos)
            if halves is None:
                logger.warning("Edit FAIL: split_to_sibling invalid_index node=%s index=%d", node_id, content_index)
                return None
            before, after = halves
            moved = node.content[content_index + 1:]
            node.content[content_index:] = [before]
            node.content = coalesce_text_runs(node.content)
            new_sibling = SectionNode(content=[after] + moved)

        siblings.insert(self._index_of(siblings, node) + 1, new_sibling)
        self._publish(roots)
        logger.info("Edit OK: split_to_sibling node=%s new=%s", node_id, new_sibling.id)
        return new_sibling.id

    def merge_with_parent(self, node_id: str) -> Optional[str]:
        """Dissolve *node_id* into its parent, in place.

        The node's content items take the node's position in the parent's
        content, then adjacent text runs are joined. Returns the parent's id;
        None for roots and unknown ids.
        """
        logger.info("Edit: merge_with_parent node=%s", node_id)
        roots = self._working_copy()
        loc = self._locate(roots, node_id)
        if loc is None:
            logger.warning("Edit FAIL: merge_with_parent node_not_found node=%s", node_id)
            return None

        node, parent, _siblings = loc
        if parent is None:
            logger.info("Edit noop: merge_with_parent root node=%s", node_id)
            return None

        index = self._index_of(parent.content, node)
        parent.content[index:index + 1] = node.content
        parent.content = coalesce_text_runs(parent.content)
        self._publish(roots)
        logger.info("Edit OK: merge_with_parent node=%s parent=%s", node_id, parent.id)
        return parent.id

    def merge_with_previous_sibling(self, node_id: str) -> Optional[str]:
        """Append the content of *node_id* to its previous sibling section.

        The previous sibling is the nearest preceding section; text runs in
        between are skipped and removed along with the node. Returns the
        previous sibling's id, or None when there is none or the id is unknown.
        """
        logger.info("Edit: merge_with_previous_sibling node=%s", node_id)
        roots = self._working_copy()
        loc = self._locate(roots, node_id)
        if loc is None:
            logger.warning("Edit FAIL: merge_with_previous_sibling node_not_found node=%s", node_id)
            return None

        node, parent, siblings = loc
        index = self._index_of(siblings, node)
        prev_index = self._neighbour_index(siblings, index, -1)
        if prev_index is None:
            logger.info("Edit noop: merge_with_previous_sibling first_sibling node=%s", node_id)
            return None

        previous = siblings[prev_index]
        previous.content = coalesce_text_runs(previous.content + node.content)
        del siblings[prev_index + 1:index + 1]
        if parent is not None:
            parent.content = coalesce_text_runs(parent.content)
        self._publish(roots)
        logger.info("Edit OK: merge_with_previous_sibling node=%s into=%s", node_id, previous.id)
        return previous.id

    def delete(self, node_id: str) -> bool:
        """Remove *node_id* and its subtree.

        Deleting the last root leaves a single fresh empty root behind.
        Returns False if the node is unknown.
        """
        logger.info("Edit: delete node=%s", node_id)
        roots = self._working_copy()
        loc = self._locate(roots, node_id)
        if loc is None:
            logger.warning("Edit FAIL: delete node_not_found node=%s", node_id)
            return False

        node, parent, siblings = loc
        del siblings[self._index_of(siblings, node)]
        if parent is not None:
            parent.content = coalesce_text_runs(parent.content)
        self._publish(roots)
        logger.info("Edit OK: delete node=%s", node_id)
        return True

    def clear(self) -> None:
        """Replace the forest with a single fresh empty root."""
        logger.info("Edit: clear")
        self._publish([])

    # ----------------------- Reordering -----------------------

    def promote(self, node_id: str) -> Optional[str]:
        """Move *node_id* out of its parent, right after the parent.

        Returns the node id, or None for roots and unknown ids.
        """
        logger.info("Edit: promote node=%s", node_id)
        roots = self._working_copy()
        loc = self._locate(roots, node_id)
        if loc is None:
            logger.warning("Edit FAIL: promote node_not_found node=%s", node_id)
            return None

        node, parent, siblings = loc
        if parent is None:
            logger.info("Edit noop: promote root node=%s", node_id)
            return None

        del siblings[self._index_of(siblings, node)]
        parent.content = coalesce_text_runs(parent.content)
        _parent, _grandparent, parent_siblings = self._locate(roots, parent.id)
        parent_siblings.insert(self._index_of(parent_siblings, parent) + 1, node)
        self._publish(roots)
        logger.info("Edit OK: promote node=%s", node_id)
        return node.id

    def demote(self, node_id: str) -> Optional[str]:
        """Make *node_id* the last child of its previous sibling section.

        Returns the new parent's id, or None when there is no previous sibling
        or the id is unknown.
        """
        logger.info("Edit: demote node=%s", node_id)
        roots = self._working_copy()
        loc = self._locate(roots, node_id)
        if loc is None:
            logger.warning("Edit FAIL: demote node_not_found node=%s", node_id)
            return None

        node, parent, siblings = loc
        index = self._index_of(siblings, node)
        prev_index = self._neighbour_index(siblings, index, -1)
        if prev_index is None:
            logger.info("Edit noop: demote first_sibling node=%s", node_id)
            return None

        new_parent = siblings[prev_index]
        del siblings[index]
        if parent is not None:
            parent.content = coalesce_text_runs(parent.content)
        new_parent.content.append(node)
        self._publish(roots)
        logger.info("Edit OK: demote node=%s parent=%s", node_id, new_parent.id)
        return new_parent.id

    def move(self, node_id: str, direction: Literal["up", "down"]) -> bool:
        """Swap *node_id* with the previous/next sibling section.

        Text runs between the two sections stay where they are. Returns False
        at the boundary, for unknown ids, or for an unsupported direction.
        """
        logger.info("Edit: move direction=%s node=%s", direction, node_id)
        if direction not in ("up", "down"):
            logger.warning("Edit FAIL: move unsupported_direction direction=%s", direction)
            return False

        roots = self._working_copy()
        loc = self._locate(roots, node_id)
        if loc is None:
            logger.warning("Edit FAIL: move node_not_found node=%s", node_id)
            return False

        node, _parent, siblings = loc
        index = self._index_of(siblings, node)
        other = self._neighbour_index(siblings, index, -1 if direction == "up" else 1)
        if other is None:
            logger.info("Edit noop: move direction=%s boundary node=%s", direction, node_id)
            return False

        siblings[index], siblings[other] = siblings[other], siblings[index]
        self._publish(roots)
        logger.info("Edit OK: move direction=%s node=%s", direction, node_id)
        return True

    # ----------------------- Wholesale replacement -----------------------

    def replace_forest(self, roots: Sequence[SectionNode]) -> None:
        """Install caller-built *roots* as the new forest.

        The nodes are copied, so later changes to the caller's objects do not
        leak into the service. An empty sequence yields a single empty root.

        Raises
        ------
        ValueError
            If two nodes share an id.
        """
        counts = Counter(collect_ids(roots))
        duplicates = sorted(node_id for node_id, seen in counts.items() if seen > 1)
        if duplicates:
            raise ValueError(f"Duplicate section ids: {', '.join(duplicates)}")

        installed = [root.clone() for root in roots]
        for node, _parent in iter_with_parent(installed):
            node.content = coalesce_text_runs(node.content)
        logger.info("Edit: replace_forest roots=%d", len(installed))
        self._publish(installed)

    def load_xml(self, xml_text: str) -> int:
        """Parse *xml_text* and install the result as the new forest.

        Returns the number of roots now in the forest. Parse errors propagate
        unchanged and leave the current forest in place.
        """
        roots = parse_sections(xml_text)
        logger.info("Edit: load_xml parsed_roots=%d", len(roots))
        self._publish(roots)
        return len(self._snapshot.roots)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _fresh_root() -> SectionNode:
        return SectionNode()

    def _working_copy(self) -> List[SectionNode]:
        return [root.clone() for root in self._snapshot.roots]

    def _publish(self, roots: List[SectionNode]) -> None:
        if not roots:
            roots = [self._fresh_root()]
        self._snapshot = ForestSnapshot(roots=tuple(roots), version=self._snapshot.version + 1)
        logger.debug("Published snapshot version=%d roots=%d", self._snapshot.version, len(roots))

    @staticmethod
    def _locate(roots: List[SectionNode], node_id: str) -> Optional[_Location]:
        for node, parent in iter_with_parent(roots):
            if node.id == node_id:
                return node, parent, (parent.content if parent is not None else roots)
        return None

    @staticmethod
    def _index_of(items: List[ContentItem], node: SectionNode) -> int:
        # Identity, not equality: dataclass __eq__ compares by value
        for index, item in enumerate(items):
            if item is node:
                return index
        raise LookupError(f"Node {node.id} is not in the given list")

    @staticmethod
    def _neighbour_index(items: List[ContentItem], index: int, step: int) -> Optional[int]:
        """Index of the nearest section from *index* in direction *step*, skipping text runs."""
        candidate = index + step
        while 0 <= candidate < len(items):
            if isinstance(items[candidate], SectionNode):
                return candidate
            candidate += step
        return None

    @staticmethod
    def _split_run(node: SectionNode, content_index: int, cursor_pos: int) -> Optional[Tuple[str, str]]:
        """Split the run at *content_index* of *node* at *cursor_pos*.

        An index equal to the content length denotes an implicit empty run,
        which is appended first. The cursor is clamped to the run bounds.
        """
        if content_index == len(node.content):
            node.content.append("")
        if not 0 <= content_index < len(node.content):
            return None
        run = node.content[content_index]
        if not isinstance(run, str):
            return None
        pos = min(max(cursor_pos, 0), len(run))
        return run[:pos], run[pos:]
