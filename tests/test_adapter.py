"""Tests for the tree model adapter."""

from unittest.mock import MagicMock

import pytest

from hwview.adapter import (
    INVALID_INDEX,
    ItemFlag,
    ModelEvent,
    Orientation,
    Role,
    TreeModelAdapter,
)
from hwview.tree import NodeType, TreeNode


@pytest.fixture
def tree():
    root = TreeNode(["", ""], NodeType.ROOT)
    host = root.append_child(TreeNode(["testhost", ""], NodeType.HOST, icon="computer"))
    keyboards = host.append_child(TreeNode(["Keyboards", ""], NodeType.CATEGORY, icon="input-keyboard"))

    visible = TreeNode(["Das Keyboard", "usbhid"], icon="input-keyboard")
    visible.raw_name = "Metadot - Das Keyboard Das Keyboard"
    keyboards.append_child(visible)

    hidden = TreeNode(["AT Translated Set 2 keyboard", "atkbd"], icon="input-keyboard")
    hidden.raw_name = "AT Translated Set 2 keyboard"
    hidden.is_hidden = True
    keyboards.append_child(hidden)
    return root


class TestNavigation:
    """Test index navigation."""

    def test_top_level(self, tree):
        model = TreeModelAdapter(tree)

        assert model.row_count() == 1
        assert model.column_count() == 2
        host = model.index(0, 0)
        assert model.data(host) == "testhost"
        assert model.parent(host) == INVALID_INDEX

    def test_children_and_parent(self, tree):
        model = TreeModelAdapter(tree)
        host = model.index(0, 0)
        category = model.index(0, 0, host)
        leaf = model.index(1, 1, category)

        assert model.row_count(category) == 2
        assert model.data(leaf) == "atkbd"
        assert model.parent(leaf).node is category.node
        assert model.parent(category).node is host.node

    def test_out_of_range(self, tree):
        model = TreeModelAdapter(tree)

        assert not model.index(5, 0).is_valid
        assert not model.index(0, 2).is_valid
        assert model.data(INVALID_INDEX) is None

    def test_second_column_has_no_children(self, tree):
        model = TreeModelAdapter(tree)

        assert model.row_count(model.index(0, 1)) == 0

    def test_index_aliases(self, tree):
        model = TreeModelAdapter(tree)
        host = model.child_index(0, 0)

        assert host == model.index(0, 0)
        assert model.parent_index(model.child_index(0, 0, host)) == host

    def test_empty_model(self):
        model = TreeModelAdapter()

        assert model.row_count() == 0
        assert model.column_count() == 2
        assert not model.index(0, 0).is_valid


class TestData:
    """Test data roles."""

    def test_decoration(self, tree):
        model = TreeModelAdapter(tree)
        category = model.index(0, 0, model.index(0, 0))

        assert model.data(model.index(0, 0, category), Role.DECORATION) == "input-keyboard"
        assert model.data(model.index(1, 0, category), Role.DECORATION) == "input-keyboard:disabled"
        assert model.data(model.index(0, 1, category), Role.DECORATION) is None

    def test_tooltip_shows_raw_name(self, tree):
        model = TreeModelAdapter(tree)
        category = model.index(0, 0, model.index(0, 0))

        assert model.data(model.index(0, 0, category), Role.TOOLTIP) == "Metadot - Das Keyboard Das Keyboard"
        assert model.data(model.index(1, 0, category), Role.TOOLTIP) is None

    def test_flags_and_headers(self, tree):
        model = TreeModelAdapter(tree)

        assert model.flags(model.index(0, 0)) == ItemFlag.SELECTABLE | ItemFlag.ENABLED
        assert model.flags(INVALID_INDEX) == ItemFlag.NO_FLAGS
        assert model.header_data(0, Orientation.HORIZONTAL) == "Name"
        assert model.header_data(1, Orientation.HORIZONTAL) == "Driver"
        assert model.header_data(0, Orientation.VERTICAL) is None


class TestReset:
    """Test tree replacement notifications."""

    def test_set_root_notifies(self, tree):
        model = TreeModelAdapter()
        observer = MagicMock()
        model.subscribe(observer)

        model.set_root(tree)

        assert [c.args[0] for c in observer.call_args_list] == [ModelEvent.ABOUT_TO_RESET, ModelEvent.RESET]
        assert model.row_count() == 1

    def test_unsubscribe(self, tree):
        model = TreeModelAdapter()
        observer = MagicMock()
        model.subscribe(observer)
        model.unsubscribe(observer)

        model.set_root(tree)

        observer.assert_not_called()
