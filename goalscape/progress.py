"""
Progress Aggregator.

Leaves carry a toggled 0/100 progress. Every other node is derived:

- quest root: each milestone gets an equal share of the quest, scaled by its
  weighted completion fraction; milestone importance plays no part
- any other interior node: weighted completion of the leaves of its subtree

Milestone overview items are never read here.
"""
import math
from fractions import Fraction
from typing import Union

from goalscape.exceptions import InvalidOperationError
from goalscape.logger import get_logger
from goalscape.models import GoalNode
from goalscape.store import GoalTree

logger = get_logger("progress")

_HALF = Fraction(1, 2)


def round_half_up(value: Union[Fraction, float]) -> int:
    """Round to the nearest int, .5 going up. Exact when given a Fraction."""
    return int(math.floor(value + _HALF))


class ProgressAggregator:
    """Owns writes to `progress` / `completed` of interior nodes."""

    def __init__(self, tree: GoalTree):
        self.tree = tree

    def completion_fraction(self, node_id: str) -> Fraction:
        """Weighted share of completed leaves under node_id, in [0, 1]."""
        leaves = self.tree.leaves_of(node_id)
        total = sum(leaf.weight for leaf in leaves)
        if total <= 0:
            return Fraction(0)
        done = sum(leaf.weight for leaf in leaves if leaf.completed)
        return Fraction(done, total)

    def quest_fraction(self, root: GoalNode) -> Fraction:
        milestones = root.children
        if not milestones:
            return Fraction(0)
        total = sum((self.completion_fraction(mid) for mid in milestones), Fraction(0))
        return total / len(milestones)

    def expected_progress(self, node: GoalNode) -> int:
        """Derived progress of a node; a non-root leaf keeps its toggled value."""
        if node.is_leaf and not node.is_root:
            return node.progress
        if node.is_root:
            fraction = self.quest_fraction(node)
        else:
            fraction = self.completion_fraction(node.id)
        return round_half_up(100 * fraction)

    def _rollup(self, node: GoalNode) -> None:
        if node.is_leaf and not node.is_root:
            return
        node.progress = self.expected_progress(node)
        node.completed = node.progress == 100

    def check_leaf(self, node_id: str) -> GoalNode:
        node = self.tree.get(node_id)
        if node.is_root:
            raise InvalidOperationError("The quest root cannot be completed directly")
        if not node.is_leaf:
            raise InvalidOperationError(
                f"Progress of {node_id} is derived from its children",
                hint="Toggle the tasks underneath instead",
            )
        return node

    def set_leaf_completion(self, node_id: str, completed: bool) -> None:
        node = self.check_leaf(node_id)
        node.completed = completed
        node.progress = 100 if completed else 0
        node.touch()

    def reset_to_leaf(self, node_id: str) -> None:
        """A node that just lost its last child starts over as an open leaf."""
        node = self.tree.get(node_id)
        if node.is_leaf:
            node.progress = 0
            node.completed = False

    def recompute_progress(self, node_id: str) -> None:
        """Recompute node_id, then every ancestor up to the root."""
        node = self.tree.get(node_id)
        self._rollup(node)
        for ancestor in self.tree.ancestors_of(node_id):
            self._rollup(ancestor)

    def recompute_all(self) -> None:
        """Full bottom-up pass over the tree."""
        for node in reversed(list(self.tree.iter_subtree(self.tree.root_id))):
            self._rollup(node)
        logger.debug(f"Full progress pass, quest at {self.tree.root.progress}%")
