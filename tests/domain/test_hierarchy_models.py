import pytest

from reach.domain.models import UNLOADED, LevelType, NodeMetrics, TreeNode, Unloaded
from reach.domain.sources import check_level_request


class TestLevelType:
    def test_child_levels(self):
        assert LevelType.BRANCH.child_level() is LevelType.ROUTE
        assert LevelType.ROUTE.child_level() is LevelType.USER
        assert LevelType.USER.child_level() is LevelType.WEEK
        assert LevelType.WEEK.child_level() is LevelType.DAY
        assert LevelType.DAY.child_level() is None

    def test_parse(self):
        assert LevelType.parse("route") is LevelType.ROUTE
        assert LevelType.parse(LevelType.DAY) is LevelType.DAY
        with pytest.raises(ValueError):
            LevelType.parse("REGION")

    def test_only_day_is_leaf(self):
        assert [level for level in LevelType if level.is_leaf] == [LevelType.DAY]


def test_tree_node_from_report_row():
    row = {
        "id": 7,
        "level_type": "ROUTE",
        "parent_id": "b1",
        "name": "Route 7",
        "total_clients": "12",
        "class_a_count": 3,
        "supermarkets_count": 1,
        "retail_count": 2,
        "hypermarkets_count": None,
        "minimarkets_count": 4,
        "total_visits": 30,
    }
    tree_node = TreeNode.from_mapping(row)
    assert tree_node.id == "7"
    assert tree_node.level_type is LevelType.ROUTE
    assert tree_node.parent_id == "b1"
    assert tree_node.metrics.total_clients == 12
    assert tree_node.metrics.hypermarkets_count == 0
    assert tree_node.metrics.stores_count == 7


def test_root_node_has_no_parent():
    tree_node = TreeNode.from_mapping({"id": "b1", "level_type": "BRANCH", "parent_id": ""})
    assert tree_node.parent_id is None
    assert tree_node.metrics == NodeMetrics()


def test_unloaded_sentinel():
    assert Unloaded() is UNLOADED
    assert not UNLOADED
    assert repr(UNLOADED) == "UNLOADED"
    assert UNLOADED != ()


def test_check_level_request():
    check_level_request(LevelType.BRANCH, None)
    check_level_request(LevelType.ROUTE, "b1")
    with pytest.raises(ValueError):
        check_level_request(LevelType.ROUTE, None)
    with pytest.raises(ValueError):
        check_level_request(LevelType.BRANCH, "b1")
