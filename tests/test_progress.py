import pytest

from goalscape.exceptions import InvalidOperationError
from goalscape.progress import round_half_up
from goalscape.service import QuestService

from conftest import add_subgoal_with_tasks


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(33.33) == 33
    assert round_half_up(66.67) == 67
    assert round_half_up(0.5) == 1


def test_milestone_rolls_up_all_tasks_of_its_subgoals(cfg, clock):
    service = QuestService.new_quest("Q", ["M"], cfg=cfg, clock=clock)
    milestone = service.tree.root.children[0]
    sg1 = add_subgoal_with_tasks(service, milestone, "SG1", 2)
    sg2 = add_subgoal_with_tasks(service, milestone, "SG2", 2)

    service.toggle_complete(sg1["tasks"][0])

    assert service.tree.get(sg1["subgoal"]).progress == 50
    assert service.tree.get(sg2["subgoal"]).progress == 0
    assert service.tree.get(milestone).progress == 25
    assert service.tree.root.progress == 25


def test_quest_splits_evenly_across_milestones(quest, milestones):
    first = add_subgoal_with_tasks(quest, milestones[0], "Small", 1)
    add_subgoal_with_tasks(quest, milestones[1], "Huge", 12)
    add_subgoal_with_tasks(quest, milestones[2], "Mid", 5)

    quest.toggle_complete(first["tasks"][0])

    assert quest.tree.get(milestones[0]).progress == 100
    assert quest.tree.get(milestones[0]).completed is True
    assert quest.tree.root.progress == 25


def test_milestone_importance_does_not_weight_quest_progress(quest, milestones):
    quest.set_importance(milestones[0], 90)
    quest.toggle_complete(milestones[0])
    assert quest.tree.root.progress == 25


def test_task_weight_scales_contribution(cfg, clock):
    service = QuestService.new_quest("Q", ["M"], cfg=cfg, clock=clock)
    milestone = service.tree.root.children[0]
    subgoal = service.add_node(milestone, "SG").children[-1].id
    heavy = service.add_node(subgoal, "heavy", weight=3).children[-1].id
    service.add_node(subgoal, "light")

    service.toggle_complete(heavy)
    assert service.tree.get(subgoal).progress == 75

    service.set_weight(heavy, 1)
    assert service.tree.get(subgoal).progress == 50

    service.set_weight(heavy, 0)  # clamped to the minimum weight
    assert service.tree.get(heavy).weight == 1


def test_rounding_is_half_up(cfg, clock):
    service = QuestService.new_quest("Q", ["M"], cfg=cfg, clock=clock)
    milestone = service.tree.root.children[0]
    sg = add_subgoal_with_tasks(service, milestone, "SG", 8)

    service.toggle_complete(sg["tasks"][0])

    assert service.tree.get(sg["subgoal"]).progress == 13


def test_exact_halves_round_up(cfg, clock):
    service = QuestService.new_quest("Q", ["M"], cfg=cfg, clock=clock)
    milestone = service.tree.root.children[0]
    sg = add_subgoal_with_tasks(service, milestone, "SG", 40)

    for task_id in sg["tasks"][:23]:
        service.toggle_complete(task_id)

    # 23/40 is exactly 57.5%
    assert service.tree.get(sg["subgoal"]).progress == 58
    assert service.tree.get(milestone).progress == 58


def test_quest_share_halves_round_up(cfg, clock):
    service = QuestService.new_quest("Q", ["M0", "M1", "M2", "M3", "M4"], cfg=cfg, clock=clock)
    first = service.tree.root.children[0]
    sg = add_subgoal_with_tasks(service, first, "SG", 40)

    for task_id in sg["tasks"][:7]:
        service.toggle_complete(task_id)

    # 7/40 of one fifth is exactly 3.5%
    assert service.tree.get(first).progress == 18
    assert service.tree.root.progress == 4
    assert service.audit_invariants()["valid"] is True


def test_uncompleting_a_task_reopens_ancestors(cfg, clock):
    service = QuestService.new_quest("Q", ["M"], cfg=cfg, clock=clock)
    milestone = service.tree.root.children[0]
    sg = add_subgoal_with_tasks(service, milestone, "SG", 1)

    service.toggle_complete(sg["tasks"][0])
    assert service.tree.root.completed is True

    service.toggle_complete(sg["tasks"][0])
    assert service.tree.get(sg["subgoal"]).completed is False
    assert service.tree.get(milestone).progress == 0
    assert service.tree.root.progress == 0


def test_skipped_milestone_still_counts(cfg, clock):
    service = QuestService.new_quest("Q", ["A", "B"], cfg=cfg, clock=clock)
    a, b = service.tree.root.children

    service.set_status(a, "skipped")
    service.toggle_complete(b)
    assert service.tree.root.progress == 50

    service.toggle_complete(a)
    assert service.tree.root.progress == 100


def test_overview_items_never_count(cfg, clock):
    service = QuestService.new_quest("Q", ["M"], cfg=cfg, clock=clock)
    milestone = service.tree.root.children[0]
    add_subgoal_with_tasks(service, milestone, "SG", 2)
    view = service.add_overview_item(milestone, "Read the handbook")

    service.toggle_overview_item(milestone, view.overview[0].id)

    assert service.tree.get(milestone).overview[0].completed is True
    assert service.tree.get(milestone).progress == 0
    assert service.tree.root.progress == 0


def test_recompute_is_idempotent(quest, milestones):
    sg = add_subgoal_with_tasks(quest, milestones[1], "SG", 3)
    quest.toggle_complete(sg["tasks"][1])
    quest.toggle_complete(milestones[0])
    before = quest.get_tree().model_dump()

    for node in list(quest.tree.iter_subtree(quest.tree.root_id)):
        quest.aggregator.recompute_progress(node.id)
    once = quest.get_tree().model_dump()
    for node in list(quest.tree.iter_subtree(quest.tree.root_id)):
        quest.aggregator.recompute_progress(node.id)

    assert once == before
    assert quest.get_tree().model_dump() == once


def test_adding_a_child_to_a_completed_leaf_reopens_it(quest, milestones):
    quest.toggle_complete(milestones[0])
    assert quest.tree.get(milestones[0]).completed is True

    quest.add_node(milestones[0], "More work")

    assert quest.tree.get(milestones[0]).completed is False
    assert quest.tree.get(milestones[0]).progress == 0


def test_losing_the_last_child_resets_to_open_leaf(quest, milestones):
    subgoal = quest.add_node(milestones[0], "SG").children[-1].id
    quest.toggle_complete(subgoal)
    assert quest.tree.get(milestones[0]).progress == 100

    quest.delete_node(subgoal)

    node = quest.tree.get(milestones[0])
    assert node.children == []
    assert node.progress == 0
    assert node.completed is False


def test_interior_and_root_cannot_be_toggled(quest, milestones):
    quest.add_node(milestones[0], "SG")
    with pytest.raises(InvalidOperationError):
        quest.toggle_complete(milestones[0])
    with pytest.raises(InvalidOperationError):
        quest.toggle_complete(quest.tree.root_id)
    with pytest.raises(InvalidOperationError):
        quest.set_weight(milestones[0], 3)
