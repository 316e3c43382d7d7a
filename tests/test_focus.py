import pytest

from goalscape.config_manager import SystemConfig
from goalscape.exceptions import InvalidOperationError
from goalscape.models import FocusPosition, NodeStatus
from goalscape.service import QuestService

from conftest import add_subgoal_with_tasks


def _current(service, parent_id):
    return [n.id for n in service.tree.children_of(parent_id) if n.is_current]


def test_first_milestone_is_current_on_a_fresh_quest(quest, milestones):
    assert _current(quest, quest.tree.root_id) == [milestones[0]]


def test_skips_completed_and_skipped_milestones(quest, milestones):
    m0, m1, m2, m3 = milestones
    quest.toggle_complete(m0)
    quest.set_status(m1, NodeStatus.SKIPPED)

    assert _current(quest, quest.tree.root_id) == [m2]
    assert quest.position(m0) == FocusPosition.COMPLETED
    assert quest.position(m1) == FocusPosition.INELIGIBLE
    assert quest.position(m2) == FocusPosition.CURRENT
    assert quest.position(m3) == FocusPosition.NOT_REACHED


def test_unskipping_moves_focus_back(quest, milestones):
    quest.set_status(milestones[0], "skipped")
    assert _current(quest, quest.tree.root_id) == [milestones[1]]

    quest.set_status(milestones[0], "active")
    assert _current(quest, quest.tree.root_id) == [milestones[0]]


def test_frozen_is_advisory_by_default(quest, milestones):
    quest.set_status(milestones[0], "frozen")
    assert _current(quest, quest.tree.root_id) == [milestones[0]]


def test_frozen_blocks_focus_when_configured(clock):
    service = QuestService.new_quest(
        "Q", ["A", "B"], cfg=SystemConfig(FROZEN_BLOCKS_FOCUS=True), clock=clock
    )
    a, b = service.tree.root.children
    service.set_status(a, "frozen")
    assert _current(service, service.tree.root_id) == [b]


def test_no_current_when_everything_is_resolved(quest, milestones):
    for m in milestones[:3]:
        quest.toggle_complete(m)
    quest.set_status(milestones[3], "skipped")

    assert _current(quest, quest.tree.root_id) == []
    assert quest.focus_summary().current_milestone_index is None


def test_focus_follows_task_completion_through_subgoals(quest, milestones):
    sg1 = add_subgoal_with_tasks(quest, milestones[0], "SG1", 2)
    sg2 = add_subgoal_with_tasks(quest, milestones[0], "SG2", 2)
    assert _current(quest, milestones[0]) == [sg1["subgoal"]]

    for task in sg1["tasks"]:
        quest.toggle_complete(task)

    assert _current(quest, milestones[0]) == [sg2["subgoal"]]
    assert [n.id for n in quest.focus.focus_path()] == [milestones[0], sg2["subgoal"], sg2["tasks"][0]]

    for task in sg2["tasks"]:
        quest.toggle_complete(task)
    assert _current(quest, quest.tree.root_id) == [milestones[1]]


def test_reorder_changes_current(quest, milestones):
    quest.reorder_siblings(quest.tree.root_id, list(reversed(milestones)))
    assert _current(quest, quest.tree.root_id) == [milestones[3]]


def test_deleting_current_moves_focus_to_next(quest, milestones):
    quest.delete_node(milestones[0])
    assert _current(quest, quest.tree.root_id) == [milestones[1]]


def test_inserting_before_completion_makes_new_node_current(quest, milestones):
    for m in milestones:
        quest.toggle_complete(m)
    assert _current(quest, quest.tree.root_id) == []

    new_id = quest.add_node(quest.tree.root_id, "Encore").children[-1].id
    assert _current(quest, quest.tree.root_id) == [new_id]


def test_status_only_applies_to_milestones(quest, milestones):
    subgoal = quest.add_node(milestones[0], "SG").children[-1].id
    with pytest.raises(InvalidOperationError):
        quest.set_status(subgoal, "skipped")
    with pytest.raises(InvalidOperationError):
        quest.set_status(milestones[0], "paused")
    assert quest.tree.get(milestones[0]).status == NodeStatus.ACTIVE


def test_focus_summary(quest, milestones):
    quest.toggle_complete(milestones[0])
    summary = quest.focus_summary()

    assert summary.milestone_count == 4
    assert summary.current_milestone_index == 1
    assert summary.current_milestone_title == "M1"
    assert summary.quest_progress == 25
    assert summary.focus_path == [milestones[1]]
