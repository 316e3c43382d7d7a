"""
GoalTree: in-memory store of one quest tree.

Holds nodes by id and performs the structural operations (insert, cascading
remove, reorder). It does not recompute importance, progress or focus; the
QuestService drives those after every structural change.
"""
from typing import Dict, Iterator, List, Optional

from goalscape.exceptions import InvalidOperationError, NotFoundError
from goalscape.logger import get_logger
from goalscape.models import GoalNode, NodeTier, child_tier

logger = get_logger("store")


class GoalTree:
    """Owns every node of a quest; the root is created with the tree."""

    def __init__(self, root: GoalNode):
        if root.parent_id is not None:
            raise InvalidOperationError("Root node cannot have a parent")
        if root.tier != NodeTier.QUEST:
            raise InvalidOperationError(f"Root node must be a quest, got {root.tier.value}")
        if root.children:
            raise InvalidOperationError("Root node must be created without children")
        root.importance = 100
        self._nodes: Dict[str, GoalNode] = {root.id: root}
        self.root_id = root.id

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def root(self) -> GoalNode:
        return self._nodes[self.root_id]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def find(self, node_id: str) -> Optional[GoalNode]:
        return self._nodes.get(node_id)

    def get(self, node_id: str) -> GoalNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NotFoundError(node_id)
        return node

    def children_of(self, node_id: str) -> List[GoalNode]:
        return [self._nodes[cid] for cid in self.get(node_id).children]

    def siblings_of(self, node_id: str) -> List[GoalNode]:
        """Sibling sequence of a node, the node itself included."""
        node = self.get(node_id)
        if node.parent_id is None:
            return [node]
        return self.children_of(node.parent_id)

    def ancestors_of(self, node_id: str) -> List[GoalNode]:
        """Parent first, root last."""
        chain = []
        current = self.get(node_id)
        while current.parent_id is not None:
            current = self._nodes[current.parent_id]
            chain.append(current)
        return chain

    def depth_of(self, node_id: str) -> int:
        return len(self.ancestors_of(node_id))

    def iter_subtree(self, node_id: str) -> Iterator[GoalNode]:
        """Pre-order walk starting at node_id."""
        stack = [self.get(node_id)]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(self._nodes[cid] for cid in reversed(node.children))

    def leaves_of(self, node_id: str) -> List[GoalNode]:
        """Childless nodes of the subtree; a leaf is its own only leaf."""
        return [n for n in self.iter_subtree(node_id) if n.is_leaf]

    def nodes_of_tier(self, tier: NodeTier) -> List[GoalNode]:
        return [n for n in self.iter_subtree(self.root_id) if n.tier == tier]

    # ------------------------------------------------------------------
    # Structural operations
    # ------------------------------------------------------------------
    def check_insert(self, parent_id: str, node: GoalNode) -> None:
        parent = self.get(parent_id)
        expected = child_tier(parent.tier)
        if expected is None:
            raise InvalidOperationError(
                f"Cannot add a child under task {parent_id}",
                hint="Add the task to its subgoal instead",
            )
        if node.id in self._nodes:
            raise InvalidOperationError(f"Duplicate node id: {node.id}")
        if node.tier != expected:
            raise InvalidOperationError(
                f"A {parent.tier.value} takes {expected.value} children, got {node.tier.value}"
            )

    def insert(self, parent_id: str, node: GoalNode) -> str:
        self.check_insert(parent_id, node)
        parent = self._nodes[parent_id]
        node.parent_id = parent_id
        node.children = []
        self._nodes[node.id] = node
        parent.children.append(node.id)
        parent.touch()
        logger.debug(f"Inserted {node.tier.value} {node.id} under {parent_id}")
        return node.id

    def check_remove(self, node_id: str) -> GoalNode:
        node = self.get(node_id)
        if node.parent_id is None:
            raise InvalidOperationError("Cannot delete the quest root")
        return node

    def remove(self, node_id: str) -> List[str]:
        """Delete the node and its whole subtree; returns the removed ids."""
        node = self.check_remove(node_id)
        doomed = [n.id for n in self.iter_subtree(node_id)]
        parent = self._nodes[node.parent_id]
        parent.children.remove(node_id)
        parent.touch()
        for nid in doomed:
            del self._nodes[nid]
        logger.debug(f"Removed {len(doomed)} node(s) rooted at {node_id}")
        return doomed

    def check_reorder(self, parent_id: str, new_order: List[str]) -> None:
        parent = self.get(parent_id)
        if len(new_order) != len(parent.children):
            raise InvalidOperationError(
                f"Reorder of {parent_id} expects {len(parent.children)} ids, got {len(new_order)}"
            )
        if len(set(new_order)) != len(new_order) or set(new_order) != set(parent.children):
            raise InvalidOperationError(
                f"Reorder of {parent_id} is not a permutation of its children",
                hint="Pass every current child id exactly once",
            )

    def reorder(self, parent_id: str, new_order: List[str]) -> None:
        self.check_reorder(parent_id, new_order)
        parent = self._nodes[parent_id]
        parent.children = list(new_order)
        parent.touch()
