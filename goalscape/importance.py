"""
Importance Allocator.

Keeps every sibling set summing to IMPORTANCE_TOTAL with integer arithmetic:
the floor quotient goes to each receiving sibling and the leftover remainder
lands on the last receiver in sequence order.
"""
from typing import Dict, List, Optional

from goalscape.config_manager import SystemConfig, config as default_config
from goalscape.exceptions import InvalidOperationError, OutOfRangeError
from goalscape.logger import get_logger
from goalscape.store import GoalTree

logger = get_logger("importance")


def bounded_int(
    field_name: str,
    value,
    low: int,
    high: Optional[int],
    clamp: bool = True,
) -> int:
    """
    Coerce `value` to an int within [low, high] (high=None means unbounded).

    Args:
        field_name: used in the error message
        value: raw number from the caller; fractional values are truncated
        low: lower bound
        high: upper bound or None
        clamp: clamp when True, raise OutOfRangeError when False

    Raises:
        InvalidOperationError: value is not a finite number
    """
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidOperationError(
            f"{field_name} must be a finite number, got {value!r}",
            hint="Pass an integer",
        ) from e
    too_low = number < low
    too_high = high is not None and number > high
    if not (too_low or too_high):
        return number
    if not clamp:
        raise OutOfRangeError(field_name, value, low, high)
    return low if too_low else high


def split_evenly(total: int, count: int) -> List[int]:
    """Floor quotient for everyone, remainder on the last share."""
    if count <= 0:
        return []
    each = total // count
    shares = [each] * count
    shares[-1] += total - each * count
    return shares


class ImportanceAllocator:
    """Writes `importance` on the nodes of a GoalTree."""

    def __init__(self, tree: GoalTree, cfg: Optional[SystemConfig] = None):
        self.tree = tree
        self.config = cfg or default_config

    def importances(self, parent_id: str) -> Dict[str, int]:
        return {child.id: child.importance for child in self.tree.children_of(parent_id)}

    def normalize(self, value) -> int:
        return bounded_int(
            "importance", value, 0, self.config.IMPORTANCE_TOTAL, self.config.CLAMP_OUT_OF_RANGE
        )

    def check_set_importance(self, node_id: str, value) -> int:
        """Validate a set_importance call; returns the value that would be applied."""
        node = self.tree.get(node_id)
        if node.parent_id is None:
            raise InvalidOperationError(
                "The quest root has no sibling set to redistribute importance in"
            )
        return self.normalize(value)

    def set_importance(self, node_id: str, value) -> Dict[str, int]:
        """
        Set one sibling's importance and redistribute the rest.

        Returns:
            Importances of the sibling set before the change.
        """
        new_value = self.check_set_importance(node_id, value)
        node = self.tree.get(node_id)
        before = self.importances(node.parent_id)

        node.importance = new_value
        others = [s for s in self.tree.siblings_of(node_id) if s.id != node_id]
        if others:
            shares = split_evenly(self.config.IMPORTANCE_TOTAL - new_value, len(others))
            for sibling, share in zip(others, shares):
                sibling.importance = share

        logger.debug(f"Importance of {node_id} set to {new_value} across {len(others) + 1} sibling(s)")
        return before

    def distribute_evenly(self, parent_id: str) -> Dict[str, int]:
        """
        Give every child of parent_id an even share.

        Returns:
            Importances of the children before the change.
        """
        children = self.tree.children_of(parent_id)
        before = {child.id: child.importance for child in children}
        for child, share in zip(children, split_evenly(self.config.IMPORTANCE_TOTAL, len(children))):
            child.importance = share
        return before
