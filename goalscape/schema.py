"""
Read-only views handed to renderers and strict input schemas for outlines.

Views are frozen pydantic models built between operations, so a caller can
hold on to one without seeing later mutations.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from goalscape.models import GoalNode, NodeStatus, NodeTier, OverviewItem
from goalscape.store import GoalTree


class OverviewItemView(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    completed: bool


class GoalNodeView(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    parent_id: Optional[str] = None
    title: str
    tier: NodeTier
    importance: int
    progress: int
    completed: bool
    status: NodeStatus
    weight: int
    is_current: bool
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    color: Optional[str] = None
    overview: List[OverviewItemView] = Field(default_factory=list)
    child_ids: List[str] = Field(default_factory=list)
    children: List["GoalNodeView"] = Field(default_factory=list)

    def find(self, node_id: str) -> Optional["GoalNodeView"]:
        if self.id == node_id:
            return self
        for child in self.children:
            found = child.find(node_id)
            if found is not None:
                return found
        return None

    def iter_ids(self) -> List[str]:
        ids = [self.id]
        for child in self.children:
            ids.extend(child.iter_ids())
        return ids


GoalNodeView.model_rebuild()


class FocusSummary(BaseModel):
    """What a dashboard shows for a quest: "Milestone 2 of 4: ..."."""
    model_config = ConfigDict(frozen=True)

    quest_id: str
    quest_title: str
    quest_progress: int
    milestone_count: int
    current_milestone_index: Optional[int] = None  # 0-based
    current_milestone_title: Optional[str] = None
    focus_path: List[str] = Field(default_factory=list)


class OutlineItem(BaseModel):
    """One node of an outline to graft under an existing parent."""
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    weight: int = Field(default=1, ge=1)
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[date] = None
    children: List["OutlineItem"] = Field(default_factory=list)


OutlineItem.model_rebuild()


def _overview_view(item: OverviewItem) -> OverviewItemView:
    return OverviewItemView(id=item.id, text=item.text, completed=item.completed)


def build_view(tree: GoalTree, node: GoalNode, depth: Optional[int] = None) -> GoalNodeView:
    """
    Snapshot `node` and its descendants.

    Args:
        tree: owning tree
        node: subtree root
        depth: levels of children to include; None for the whole subtree
    """
    children: List[GoalNodeView] = []
    if depth is None or depth > 0:
        next_depth = None if depth is None else depth - 1
        children = [build_view(tree, child, next_depth) for child in tree.children_of(node.id)]

    return GoalNodeView(
        id=node.id,
        parent_id=node.parent_id,
        title=node.title,
        tier=node.tier,
        importance=node.importance,
        progress=node.progress,
        completed=node.completed,
        status=node.status,
        weight=node.weight,
        is_current=node.is_current,
        notes=node.notes,
        tags=list(node.tags),
        due_date=node.due_date,
        start_date=node.start_date,
        color=node.color,
        overview=[_overview_view(item) for item in node.overview],
        child_ids=list(node.children),
        children=children,
    )
