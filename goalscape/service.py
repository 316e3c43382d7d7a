"""
Canonical quest mutation service.

QuestService is the only writer of a GoalTree. Every command validates its
preconditions first, applies the structural or value change, then brings
importance, progress and focus back in line before returning a snapshot.
"""
import functools
import uuid
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from goalscape.config_manager import SystemConfig, config as default_config
from goalscape.exceptions import GoalscapeError, InvalidOperationError, NotFoundError
from goalscape.focus import FocusPointer
from goalscape.importance import ImportanceAllocator, bounded_int
from goalscape.logger import get_logger
from goalscape.models import (
    FocusPosition,
    GoalNode,
    NodeStatus,
    NodeTier,
    OverviewItem,
    child_tier,
    new_node_id,
)
from goalscape.progress import ProgressAggregator
from goalscape.schema import FocusSummary, GoalNodeView, OutlineItem, build_view
from goalscape.store import GoalTree
from goalscape.transition import ImportanceTransition, TransitionBoard

logger = get_logger("service")

_TIER_DEPTH = {
    NodeTier.QUEST: 0,
    NodeTier.MILESTONE: 1,
    NodeTier.SUBGOAL: 2,
    NodeTier.TASK: 3,
}


def _command(func: Callable) -> Callable:
    """Log rejected commands before handing the error back to the caller."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except GoalscapeError as e:
            logger.warning(f"{func.__name__} rejected: {e.message}")
            raise

    return wrapper


class QuestService:
    """Application service for one quest tree."""

    def __init__(
        self,
        tree: GoalTree,
        cfg: Optional[SystemConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.tree = tree
        self.config = cfg or default_config
        self.allocator = ImportanceAllocator(tree, self.config)
        self.aggregator = ProgressAggregator(tree)
        self.focus = FocusPointer(tree, self.config)
        self.transitions = TransitionBoard(
            self.config.TRANSITION_DURATION_MS, self.config.TRANSITION_FRAME_MS, clock=clock
        )
        self.aggregator.recompute_all()
        self.focus.recompute_all()

    @classmethod
    def new_quest(
        cls,
        title: str,
        milestones: Iterable[str] = (),
        cfg: Optional[SystemConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> "QuestService":
        root = GoalNode(id=new_node_id(NodeTier.QUEST), title=title, tier=NodeTier.QUEST)
        service = cls(GoalTree(root), cfg=cfg, clock=clock)
        for milestone_title in milestones:
            service.add_node(root.id, milestone_title)
        logger.info(f"Quest {root.id} created with {len(root.children)} milestone(s)")
        return service

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------
    def _result(self, node: GoalNode) -> GoalNodeView:
        """Subtree of the sibling set a command touched: the node's parent,
        or the root when the node is the root."""
        anchor = self.tree.get(node.parent_id) if node.parent_id else node
        return build_view(self.tree, anchor)

    def _rebalance(self, parent_id: str) -> None:
        parent = self.tree.get(parent_id)
        if not parent.children:
            self.transitions.discard([parent_id])
            return
        before = self.allocator.distribute_evenly(parent_id)
        self.transitions.begin(parent_id, before, self.allocator.importances(parent_id))

    def _normalize_weight(self, weight: Optional[int]) -> int:
        if weight is None:
            weight = self.config.DEFAULT_TASK_WEIGHT
        return bounded_int("weight", weight, 1, None, self.config.CLAMP_OUT_OF_RANGE)

    @staticmethod
    def _normalize_title(title: str) -> str:
        cleaned = " ".join(str(title or "").split())
        if not cleaned:
            raise InvalidOperationError("Title cannot be empty")
        return cleaned

    @staticmethod
    def status_from_string(status: Union[str, NodeStatus]) -> NodeStatus:
        if isinstance(status, NodeStatus):
            return status
        try:
            return NodeStatus(str(status).strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in NodeStatus)
            raise InvalidOperationError(f"Unknown status {status!r}", hint=f"Use one of: {allowed}")

    def _require_milestone(self, node_id: str) -> GoalNode:
        node = self.tree.get(node_id)
        if node.tier != NodeTier.MILESTONE:
            raise InvalidOperationError(
                f"Only milestones carry this field, {node_id} is a {node.tier.value}"
            )
        return node

    # ---------------------------------------------------------------------
    # Query operations
    # ---------------------------------------------------------------------
    def get_tree(self, root_id: Optional[str] = None) -> GoalNodeView:
        return build_view(self.tree, self.tree.get(root_id or self.tree.root_id))

    def get_node(self, node_id: str) -> GoalNodeView:
        return build_view(self.tree, self.tree.get(node_id), depth=0)

    def position(self, node_id: str) -> FocusPosition:
        return self.focus.position(node_id)

    def importance_transition(self, parent_id: str) -> Optional[ImportanceTransition]:
        """Live animation of a sibling set, separate from the authoritative tree."""
        self.tree.get(parent_id)
        return self.transitions.get(parent_id)

    def focus_summary(self) -> FocusSummary:
        root = self.tree.root
        path = self.focus.focus_path()
        current = self.focus.current_of(root.id)
        index = root.children.index(current.id) if current is not None else None
        return FocusSummary(
            quest_id=root.id,
            quest_title=root.title,
            quest_progress=root.progress,
            milestone_count=len(root.children),
            current_milestone_index=index,
            current_milestone_title=current.title if current is not None else None,
            focus_path=[n.id for n in path],
        )

    def animated_importances(self, parent_id: str) -> Dict[str, float]:
        """
        Importances of parent_id's children as a renderer should draw them now.

        While the sibling set is mid-transition this is the current animation
        frame; otherwise it is the authoritative importance.
        """
        settled: Dict[str, float] = {
            k: float(v) for k, v in self.allocator.importances(parent_id).items()
        }
        transition = self.transitions.get(parent_id)
        if transition is None or not transition.active:
            return settled
        frame = transition.poll()
        return frame if frame is not None else settled

    def audit_invariants(self) -> Dict[str, Any]:
        """Check the sibling-sum, roll-up and focus invariants on the whole tree."""
        violations: List[str] = []
        total = self.config.IMPORTANCE_TOTAL
        for node in self.tree.iter_subtree(self.tree.root_id):
            children = self.tree.children_of(node.id)
            if len(children) >= 2 and sum(c.importance for c in children) != total:
                violations.append(f"importance of children of {node.id} does not sum to {total}")
            current = [c.id for c in children if c.is_current]
            expected = next((c.id for c in children if self.focus.is_eligible(c)), None)
            if current != ([expected] if expected else []):
                violations.append(f"focus of children of {node.id} is {current}, expected {expected}")
            for child in children:
                if child.parent_id != node.id:
                    violations.append(f"{child.id} does not point back to {node.id}")
            derived = self.aggregator.expected_progress(node)
            if node.progress != derived or (children and node.completed != (derived == 100)):
                violations.append(f"progress of {node.id} is {node.progress}, expected {derived}")
        return {"valid": not violations, "violations": violations}

    # ---------------------------------------------------------------------
    # Command operations
    # ---------------------------------------------------------------------
    @_command
    def add_node(
        self,
        parent_id: str,
        title: Optional[str] = None,
        weight: Optional[int] = None,
        notes: str = "",
        tags: Optional[Sequence[str]] = None,
        due_date: Optional[date] = None,
        start_date: Optional[date] = None,
        color: Optional[str] = None,
    ) -> GoalNodeView:
        """
        Append a child to parent_id and split the sibling importance evenly.

        Returns:
            The parent's subtree; the new node is its last child.
        """
        parent = self.tree.get(parent_id)
        tier = child_tier(parent.tier)
        if tier is None:
            raise InvalidOperationError(f"Cannot add a child under task {parent_id}")
        node = GoalNode(
            id=new_node_id(tier),
            title=self._normalize_title(title or self.config.DEFAULT_NODE_TITLE),
            tier=tier,
            weight=self._normalize_weight(weight),
            notes=notes,
            tags=list(tags or []),
            due_date=due_date,
            start_date=start_date,
            color=color,
        )
        self.tree.check_insert(parent_id, node)

        self.tree.insert(parent_id, node)
        self._rebalance(parent_id)
        self.aggregator.recompute_progress(parent_id)
        self.focus.recompute_chain(parent_id)

        logger.info(f"Added {tier.value} {node.id} under {parent_id}")
        return build_view(self.tree, parent)

    @_command
    def delete_node(self, node_id: str) -> GoalNodeView:
        """Delete node_id with its whole subtree; returns the parent's subtree."""
        node = self.tree.check_remove(node_id)
        parent_id = node.parent_id

        removed = self.tree.remove(node_id)
        self.transitions.discard(removed)
        self._rebalance(parent_id)
        self.aggregator.reset_to_leaf(parent_id)
        self.aggregator.recompute_progress(parent_id)
        self.focus.recompute_chain(parent_id)

        logger.info(f"Deleted {node_id} and {len(removed) - 1} descendant(s)")
        return build_view(self.tree, self.tree.get(parent_id))

    @_command
    def toggle_complete(self, node_id: str) -> GoalNodeView:
        node = self.aggregator.check_leaf(node_id)

        self.aggregator.set_leaf_completion(node_id, not node.completed)
        self.aggregator.recompute_progress(node.parent_id)
        self.focus.recompute_chain(node.parent_id)

        logger.info(
            f"{node_id} marked {'complete' if node.completed else 'open'}, "
            f"quest at {self.tree.root.progress}%"
        )
        return self._result(node)

    @_command
    def set_importance(self, node_id: str, value: int) -> GoalNodeView:
        node = self.tree.get(node_id)
        self.allocator.check_set_importance(node_id, value)

        before = self.allocator.set_importance(node_id, value)
        after = self.allocator.importances(node.parent_id)
        self.transitions.begin(node.parent_id, before, after)

        logger.debug(f"Importance of {node.parent_id} children now {after}")
        return self._result(node)

    @_command
    def reorder_siblings(self, parent_id: str, order: Sequence[str]) -> GoalNodeView:
        order = list(order)
        self.tree.check_reorder(parent_id, order)

        self.tree.reorder(parent_id, order)
        self.focus.recompute_current(parent_id)

        logger.info(f"Reordered children of {parent_id}")
        return build_view(self.tree, self.tree.get(parent_id))

    @_command
    def set_status(self, node_id: str, status: Union[str, NodeStatus]) -> GoalNodeView:
        new_status = self.status_from_string(status)
        node = self._require_milestone(node_id)

        node.status = new_status
        node.touch()
        self.focus.recompute_current(node.parent_id)

        logger.info(f"Milestone {node_id} is now {new_status.value}")
        return self._result(node)

    @_command
    def set_weight(self, node_id: str, weight: int) -> GoalNodeView:
        node = self.aggregator.check_leaf(node_id)
        new_weight = bounded_int("weight", weight, 1, None, self.config.CLAMP_OUT_OF_RANGE)

        node.weight = new_weight
        node.touch()
        self.aggregator.recompute_progress(node.parent_id)
        self.focus.recompute_chain(node.parent_id)
        return self._result(node)

    @_command
    def rename_node(self, node_id: str, title: str) -> GoalNodeView:
        node = self.tree.get(node_id)
        node.title = self._normalize_title(title)
        node.touch()
        return self._result(node)

    @_command
    def update_details(
        self,
        node_id: str,
        notes: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        due_date: Optional[date] = None,
        start_date: Optional[date] = None,
        color: Optional[str] = None,
    ) -> GoalNodeView:
        """Edit free-form details; None leaves a field unchanged."""
        node = self.tree.get(node_id)
        effective_start = start_date or node.start_date
        effective_due = due_date or node.due_date
        if effective_start and effective_due and effective_start > effective_due:
            raise InvalidOperationError("start_date is after due_date")
        if notes is not None:
            node.notes = notes
        if tags is not None:
            node.tags = list(tags)
        if due_date is not None:
            node.due_date = due_date
        if start_date is not None:
            node.start_date = start_date
        if color is not None:
            node.color = color
        node.touch()
        return self._result(node)

    @_command
    def add_overview_item(self, milestone_id: str, text: str) -> GoalNodeView:
        """Add a checklist entry to a milestone; never affects progress."""
        milestone = self._require_milestone(milestone_id)
        item = OverviewItem(id=f"ov_{uuid.uuid4().hex[:8]}", text=self._normalize_title(text))
        milestone.overview.append(item)
        milestone.touch()
        return build_view(self.tree, milestone, depth=0)

    @_command
    def toggle_overview_item(self, milestone_id: str, item_id: str) -> GoalNodeView:
        milestone = self._require_milestone(milestone_id)
        item = next((i for i in milestone.overview if i.id == item_id), None)
        if item is None:
            raise NotFoundError(item_id, role="Overview item")
        item.completed = not item.completed
        milestone.touch()
        return build_view(self.tree, milestone, depth=0)

    @_command
    def add_outline(
        self, parent_id: str, outline: Sequence[Union[Dict[str, Any], OutlineItem]]
    ) -> GoalNodeView:
        """
        Graft a nested outline (e.g. milestones with subgoals and tasks
        produced by a planning assistant) under parent_id.

        The whole outline is validated before anything is inserted.
        """
        parent = self.tree.get(parent_id)
        try:
            items = [OutlineItem.model_validate(entry) for entry in outline]
        except ValidationError as e:
            raise InvalidOperationError(f"Malformed outline: {e.error_count()} error(s)") from e

        def outline_depth(entries: List[OutlineItem]) -> int:
            if not entries:
                return 0
            return 1 + max(outline_depth(entry.children) for entry in entries)

        def check_titles(entries: List[OutlineItem]) -> None:
            for entry in entries:
                self._normalize_title(entry.title)
                check_titles(entry.children)

        room = _TIER_DEPTH[NodeTier.TASK] - _TIER_DEPTH[parent.tier]
        if outline_depth(items) > room:
            raise InvalidOperationError(
                f"Outline is {outline_depth(items)} level(s) deep, {parent.tier.value} has room for {room}"
            )
        check_titles(items)
        if not items:
            return build_view(self.tree, parent)

        created: List[str] = []

        def graft(target_id: str, entries: List[OutlineItem]) -> None:
            tier = child_tier(self.tree.get(target_id).tier)
            for entry in entries:
                node = GoalNode(
                    id=new_node_id(tier),
                    title=self._normalize_title(entry.title),
                    tier=tier,
                    weight=entry.weight,
                    notes=entry.notes,
                    tags=list(entry.tags),
                    due_date=entry.due_date,
                )
                self.tree.insert(target_id, node)
                created.append(node.id)
                if entry.children:
                    graft(node.id, entry.children)
                    self.allocator.distribute_evenly(node.id)

        graft(parent_id, items)
        self._rebalance(parent_id)
        for node_id in created:
            self.aggregator.recompute_progress(node_id)
            self.focus.recompute_current(node_id)
        self.aggregator.recompute_progress(parent_id)
        self.focus.recompute_chain(parent_id)

        logger.info(f"Grafted {len(created)} node(s) under {parent_id}")
        return build_view(self.tree, parent)
