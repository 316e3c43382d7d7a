"""
Goalscape models: Quest -> Milestone -> Subgoal -> Task hierarchy.
Nodes are mutable dataclasses owned by a GoalTree; callers outside the
package only ever see the frozen views from goalscape.schema.
"""
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class NodeTier(str, Enum):
    QUEST = "quest"
    MILESTONE = "milestone"
    SUBGOAL = "subgoal"
    TASK = "task"


class NodeStatus(str, Enum):
    ACTIVE = "active"
    SKIPPED = "skipped"  # out of focus scanning
    FROZEN = "frozen"    # advisory unless FROZEN_BLOCKS_FOCUS


class FocusPosition(str, Enum):
    """Where a node sits relative to the current focus of its sequence."""
    COMPLETED = "completed"
    CURRENT = "current"
    NOT_REACHED = "not_reached"
    INELIGIBLE = "ineligible"


_TIER_ORDER = [NodeTier.QUEST, NodeTier.MILESTONE, NodeTier.SUBGOAL, NodeTier.TASK]


def child_tier(tier: NodeTier) -> Optional[NodeTier]:
    """Tier of nodes created under `tier`; None for tasks, which are leaves."""
    index = _TIER_ORDER.index(tier)
    if index + 1 >= len(_TIER_ORDER):
        return None
    return _TIER_ORDER[index + 1]


def new_node_id(tier: NodeTier) -> str:
    return f"{tier.value}_{uuid.uuid4().hex[:8]}"


@dataclass
class OverviewItem:
    """Checklist entry on a milestone. Never counted in progress."""
    id: str
    text: str
    completed: bool = False


@dataclass
class GoalNode:
    """
    Single node of the quest tree.

    `progress` and `completed` of interior nodes are written by the
    ProgressAggregator only; `is_current` by the FocusPointer only.
    """
    id: str
    title: str
    tier: NodeTier
    parent_id: Optional[str] = None
    importance: int = 0
    progress: int = 0
    completed: bool = False
    status: NodeStatus = NodeStatus.ACTIVE
    weight: int = 1
    children: List[str] = field(default_factory=list)
    is_current: bool = False
    notes: str = ""
    tags: List[str] = field(default_factory=list)
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    color: Optional[str] = None  # hex, inherited by descendants when rendering
    overview: List[OverviewItem] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        now = datetime.now().isoformat()
        if self.created_at is None:
            self.created_at = now
        if self.updated_at is None:
            self.updated_at = now

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def touch(self) -> None:
        self.updated_at = datetime.now().isoformat()
