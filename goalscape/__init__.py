# Goalscape: weighted quest hierarchy with importance, progress roll-up and focus tracking.

from goalscape.exceptions import GoalscapeError, InvalidOperationError, NotFoundError, OutOfRangeError
from goalscape.models import FocusPosition, GoalNode, NodeStatus, NodeTier, OverviewItem
from goalscape.schema import FocusSummary, GoalNodeView, OutlineItem
from goalscape.service import QuestService
from goalscape.store import GoalTree
from goalscape.transition import ImportanceTransition, TransitionBoard

__all__ = [
    "FocusPosition",
    "FocusSummary",
    "GoalNode",
    "GoalNodeView",
    "GoalTree",
    "GoalscapeError",
    "ImportanceTransition",
    "InvalidOperationError",
    "NodeStatus",
    "NodeTier",
    "NotFoundError",
    "OutOfRangeError",
    "OutlineItem",
    "OverviewItem",
    "QuestService",
    "TransitionBoard",
]
