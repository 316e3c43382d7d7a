"""
Focus Pointer.

Within a sibling sequence the first node that is neither completed nor
skipped is the current focus. Nodes before it are resolved, nodes after it
are not yet reached. Frozen is advisory unless FROZEN_BLOCKS_FOCUS is set.
"""
from typing import List, Optional

from goalscape.config_manager import SystemConfig, config as default_config
from goalscape.logger import get_logger
from goalscape.models import FocusPosition, GoalNode, NodeStatus
from goalscape.store import GoalTree

logger = get_logger("focus")


class FocusPointer:
    """Maintains `is_current` on every sibling sequence of a GoalTree."""

    def __init__(self, tree: GoalTree, cfg: Optional[SystemConfig] = None):
        self.tree = tree
        self.config = cfg or default_config

    def is_eligible(self, node: GoalNode) -> bool:
        if node.completed or node.status == NodeStatus.SKIPPED:
            return False
        if self.config.FROZEN_BLOCKS_FOCUS and node.status == NodeStatus.FROZEN:
            return False
        return True

    def recompute_current(self, parent_id: str) -> Optional[str]:
        """Re-mark the current child of parent_id; returns its id or None."""
        current_id = None
        for child in self.tree.children_of(parent_id):
            if current_id is None and self.is_eligible(child):
                current_id = child.id
                child.is_current = True
            else:
                child.is_current = False
        return current_id

    def recompute_chain(self, node_id: str) -> None:
        """Recompute the sequences a change at node_id can affect: its own
        children and every sequence along the path to the root."""
        node = self.tree.get(node_id)
        self.recompute_current(node.id)
        for ancestor in self.tree.ancestors_of(node_id):
            self.recompute_current(ancestor.id)

    def recompute_all(self) -> None:
        for node in self.tree.iter_subtree(self.tree.root_id):
            self.recompute_current(node.id)

    def current_of(self, parent_id: str) -> Optional[GoalNode]:
        return next((c for c in self.tree.children_of(parent_id) if c.is_current), None)

    def position(self, node_id: str) -> FocusPosition:
        node = self.tree.get(node_id)
        if node.is_current:
            return FocusPosition.CURRENT
        if node.completed:
            return FocusPosition.COMPLETED
        if not self.is_eligible(node):
            return FocusPosition.INELIGIBLE
        # Eligible but not current: somebody earlier holds the focus
        return FocusPosition.NOT_REACHED

    def focus_path(self, root_id: Optional[str] = None) -> List[GoalNode]:
        """Follow current markers down from root_id (excluded)."""
        path = []
        current = self.current_of(root_id or self.tree.root_id)
        while current is not None:
            path.append(current)
            current = self.current_of(current.id)
        return path
