"""Item-model surface over a device tree, for an external tree view."""

from dataclasses import dataclass
from enum import Enum, IntEnum, IntFlag
from typing import Any, Callable, List, Optional

from .tree import TreeNode
from .util.logging import get_logger

logger = get_logger(__name__)

HEADERS = ("Name", "Driver")

# Appended to an icon name to request its greyed-out rendition
DISABLED_ICON_SUFFIX = ":disabled"


class Role(IntEnum):
    DISPLAY = 0
    DECORATION = 1
    TOOLTIP = 3


class Orientation(Enum):
    HORIZONTAL = 1
    VERTICAL = 2


class ItemFlag(IntFlag):
    NO_FLAGS = 0
    SELECTABLE = 1
    ENABLED = 32


class ModelEvent(Enum):
    ABOUT_TO_RESET = "about_to_reset"
    RESET = "reset"


@dataclass(frozen=True)
class ModelIndex:
    """Address of a cell: row and column under a parent node."""

    row: int = -1
    column: int = -1
    node: Optional[TreeNode] = None

    @property
    def is_valid(self) -> bool:
        return self.node is not None and self.row >= 0 and self.column >= 0


INVALID_INDEX = ModelIndex()


class TreeModelAdapter:
    """Read-only view over a :class:`TreeNode` tree.

    The adapter never changes the tree. Swapping in a new tree with
    :meth:`set_root` notifies observers with a full reset.
    """

    def __init__(self, root: Optional[TreeNode] = None):
        self._root = root
        self._observers: List[Callable[[ModelEvent], None]] = []

    @property
    def root(self) -> Optional[TreeNode]:
        return self._root

    def subscribe(self, observer: Callable[[ModelEvent], None]) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: Callable[[ModelEvent], None]) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, event: ModelEvent) -> None:
        for observer in list(self._observers):
            observer(event)

    def set_root(self, root: TreeNode) -> None:
        """Replace the whole tree, bracketed by reset notifications."""
        self._notify(ModelEvent.ABOUT_TO_RESET)
        self._root = root
        self._notify(ModelEvent.RESET)

    def node(self, index: ModelIndex) -> Optional[TreeNode]:
        return index.node if index.is_valid else self._root

    def row_count(self, parent: ModelIndex = INVALID_INDEX) -> int:
        if parent.column > 0:
            return 0
        node = self.node(parent)
        return len(node.children) if node is not None else 0

    def column_count(self, parent: ModelIndex = INVALID_INDEX) -> int:
        if self._root is None:
            return len(HEADERS)
        return self._root.column_count()

    def index(self, row: int, column: int, parent: ModelIndex = INVALID_INDEX) -> ModelIndex:
        if self._root is None or column < 0 or column >= self.column_count(parent):
            return INVALID_INDEX
        parent_node = self.node(parent)
        child = parent_node.child(row) if parent_node is not None else None
        if child is None:
            return INVALID_INDEX
        return ModelIndex(row, column, child)

    child_index = index

    def parent(self, child: ModelIndex) -> ModelIndex:
        if not child.is_valid:
            return INVALID_INDEX
        parent_node = child.node.parent
        if parent_node is None or parent_node is self._root:
            return INVALID_INDEX
        return ModelIndex(parent_node.row(), 0, parent_node)

    parent_index = parent

    def data(self, index: ModelIndex, role: Role = Role.DISPLAY) -> Any:
        if not index.is_valid:
            return None
        node = index.node

        if role == Role.DISPLAY:
            return node.label(index.column)

        if role == Role.DECORATION:
            if index.column != 0 or not node.icon:
                return None
            if node.is_hidden:
                return node.icon + DISABLED_ICON_SUFFIX
            return node.icon

        if role == Role.TOOLTIP:
            if index.column == 0 and node.raw_name and node.raw_name != node.display_name:
                return node.raw_name
            return None

        return None

    def flags(self, index: ModelIndex) -> ItemFlag:
        if not index.is_valid:
            return ItemFlag.NO_FLAGS
        return ItemFlag.SELECTABLE | ItemFlag.ENABLED

    def header_data(self, section: int, orientation: Orientation, role: Role = Role.DISPLAY) -> Optional[str]:
        if orientation == Orientation.HORIZONTAL and role == Role.DISPLAY and 0 <= section < len(HEADERS):
            return HEADERS[section]
        return None
