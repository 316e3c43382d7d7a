import sys
from pathlib import Path
from typing import Dict, List

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from goalscape.config_manager import SystemConfig  # noqa: E402
from goalscape.schema import GoalNodeView  # noqa: E402
from goalscape.service import QuestService  # noqa: E402


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def find_by_title(view: GoalNodeView, title: str) -> GoalNodeView:
    if view.title == title:
        return view
    for child in view.children:
        try:
            return find_by_title(child, title)
        except LookupError:
            continue
    raise LookupError(title)


def child_ids(service: QuestService, parent_id: str) -> List[str]:
    return list(service.tree.get(parent_id).children)


def importances(service: QuestService, parent_id: str) -> List[int]:
    return [n.importance for n in service.tree.children_of(parent_id)]


def add_subgoal_with_tasks(service: QuestService, milestone_id: str, title: str, tasks: int) -> Dict[str, object]:
    subgoal = service.add_node(milestone_id, title).children[-1]
    task_ids = []
    for i in range(tasks):
        task_ids.append(service.add_node(subgoal.id, f"{title}-task-{i}").children[-1].id)
    return {"subgoal": subgoal.id, "tasks": task_ids}


@pytest.fixture
def cfg() -> SystemConfig:
    return SystemConfig()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def quest(cfg, clock) -> QuestService:
    """Quest with four leaf milestones M0..M3."""
    return QuestService.new_quest("Launch Side Project", ["M0", "M1", "M2", "M3"], cfg=cfg, clock=clock)


@pytest.fixture
def milestones(quest) -> List[str]:
    return child_ids(quest, quest.tree.root_id)
