"""Host -> category -> device tree built from a device cache."""

from enum import Enum
from typing import Dict, List, Optional

from . import constants as c
from .categories import DISPLAYABLE_CATEGORIES, HOST_ICON, DeviceCategory
from .namemappings import NameMappings, get_name_mappings, is_acpi_dev_path
from .record import DeviceRecord
from .util.logging import get_logger

logger = get_logger(__name__)

# Categories whose device names go through the software-device lookup
SOFTWARE_NAMED_CATEGORIES = frozenset({
    DeviceCategory.SOFTWARE_DEVICES,
    DeviceCategory.HUMAN_INTERFACE_DEVICES,
    DeviceCategory.KEYBOARDS,
    DeviceCategory.MICE_AND_OTHER_POINTING_DEVICES,
})


class NodeType(Enum):
    ROOT = "root"
    HOST = "host"
    CATEGORY = "category"
    DEVICE = "device"


class TreeNode:
    """A row in the device tree, with two columns: name and driver."""

    def __init__(
        self,
        labels: List[str],
        node_type: NodeType = NodeType.DEVICE,
        parent: Optional["TreeNode"] = None,
        icon: Optional[str] = None,
    ):
        self.labels = list(labels)
        self.node_type = node_type
        self.icon = icon
        self.children: List["TreeNode"] = []
        self.parent = parent
        self.is_hidden = False
        self.syspath = ""
        self.raw_name = ""
        self.category: Optional[DeviceCategory] = None

    @property
    def display_name(self) -> str:
        return self.labels[0] if self.labels else ""

    @property
    def driver(self) -> str:
        return self.labels[1] if len(self.labels) > 1 else ""

    def column_count(self) -> int:
        return len(self.labels)

    def label(self, column: int) -> str:
        if 0 <= column < len(self.labels):
            return self.labels[column]
        return ""

    def append_child(self, child: "TreeNode") -> "TreeNode":
        child.parent = self
        self.children.append(child)
        return child

    def child(self, row: int) -> Optional["TreeNode"]:
        if 0 <= row < len(self.children):
            return self.children[row]
        return None

    def row(self) -> int:
        """Position of this node among its parent's children."""
        if self.parent is None:
            return 0
        for i, sibling in enumerate(self.parent.children):
            if sibling is self:
                return i
        return 0

    def sort_children(self) -> None:
        """Sort children by display name, case-insensitive; stable on ties."""
        self.children.sort(key=lambda n: n.display_name.casefold())

    def walk(self):
        """Yield this node and all descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def leaves(self) -> List["TreeNode"]:
        return [n for n in self.walk() if n.node_type == NodeType.DEVICE]

    def __repr__(self) -> str:
        return f"TreeNode({self.node_type.value}, {self.labels!r})"


def device_display_name(record: DeviceRecord, mappings: NameMappings) -> str:
    """Name shown for a device, depending on its category."""
    category = record.category

    if category == DeviceCategory.BATTERIES:
        if is_acpi_dev_path(record.dev_path):
            return mappings.acpi_device_nice_name(record.dev_path, record.name)
        return record.name

    if category == DeviceCategory.STORAGE_VOLUMES:
        return (
            record.property_value(c.PROP_ID_PART_ENTRY_NAME)
            or record.property_value(c.PROP_ID_FS_LABEL)
            or record.name
        )

    if category in SOFTWARE_NAMED_CATEGORIES:
        return mappings.software_device_nice_name(record.name)

    return record.name


class CategoryTreeBuilder:
    """Groups cache records under a host node by category."""

    def __init__(self, mappings: Optional[NameMappings] = None):
        self.mappings = mappings

    def build(self, cache, show_hidden: Optional[bool] = None) -> TreeNode:
        """Build a fresh tree; ``show_hidden`` defaults to the cache's view flag."""
        if show_hidden is None:
            show_hidden = cache.show_hidden
        mappings = self.mappings or get_name_mappings()

        root = TreeNode(["", ""], NodeType.ROOT)
        host = root.append_child(TreeNode([cache.hostname(), ""], NodeType.HOST, icon=HOST_ICON))

        category_nodes: Dict[DeviceCategory, TreeNode] = {}
        for category in DISPLAYABLE_CATEGORIES:
            node = TreeNode([category.label, ""], NodeType.CATEGORY, icon=category.icon_name)
            node.category = category
            category_nodes[category] = host.append_child(node)

        computer = category_nodes[DeviceCategory.COMPUTER]
        computer_node = TreeNode([cache.computer_name(), ""], NodeType.DEVICE, icon=computer.icon)
        computer_node.syspath = cache.computer_syspath()
        computer_node.raw_name = computer_node.display_name
        computer_node.category = DeviceCategory.COMPUTER
        computer.append_child(computer_node)

        seen = set()
        for record in cache.all():
            if record.is_hidden and not show_hidden:
                continue
            if not record.is_valid_for_display or record.syspath in seen:
                continue
            seen.add(record.syspath)

            parent = category_nodes[record.category]
            leaf = TreeNode(
                [device_display_name(record, mappings), record.driver],
                NodeType.DEVICE,
                icon=parent.icon,
            )
            leaf.syspath = record.syspath
            leaf.raw_name = record.name
            leaf.is_hidden = record.is_hidden
            leaf.category = record.category
            parent.append_child(leaf)

        for node in list(host.children):
            if not node.children:
                host.children.remove(node)
            else:
                node.sort_children()
        host.sort_children()

        logger.debug(f"Built device tree with {len(host.children)} categories")
        return root
