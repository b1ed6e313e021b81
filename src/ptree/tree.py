"""Process tree construction and search for ptree."""

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from enum import Enum

from ptree.models import Forest, ProcessNode, ProcessRecord

logger = logging.getLogger(__name__)

Matcher = Callable[[ProcessNode], bool]


class RootPolicy(Enum):
    """Which processes start a tree in the forest."""

    PARENT_ABSENT = "absent"  # Parent not in the snapshot
    PARENT_ZERO = "zero"  # Parent pid is 0
    PID_ONE = "init"  # Only pid 1

    def is_root(self, record: ProcessRecord, records: Mapping[int, ProcessRecord]) -> bool:
        """Check if a record starts a tree under this policy."""
        if self is RootPolicy.PARENT_ZERO:
            return record.parent_id == 0
        if self is RootPolicy.PID_ONE:
            return record.pid == 1
        return record.parent_id == record.pid or record.parent_id not in records


def build_forest(
    records: Mapping[int, ProcessRecord],
    policy: RootPolicy = RootPolicy.PARENT_ABSENT,
) -> Forest:
    """
    Build the process forest from a flat pid -> record mapping.

    Roots and every list of children are sorted by ascending pid. Records
    that can't be reached from a root are left out. A pid reached a second
    time (corrupt parent links) is dropped along with its subtree.

    Args:
        records: Records keyed by pid.
        policy: Rule deciding which records are roots.

    Returns:
        The root nodes, ascending by pid.
    """
    roots: list[ProcessRecord] = []
    children_of: dict[int, list[ProcessRecord]] = defaultdict(list)

    for record in records.values():
        if policy.is_root(record, records):
            roots.append(record)
        elif record.parent_id == record.pid:
            logger.warning("pid %d is its own parent, dropping it", record.pid)
        else:
            children_of[record.parent_id].append(record)

    visited: set[int] = set()
    forest: Forest = []
    for record in sorted(roots, key=lambda r: r.pid):
        node = _build_tree(record, children_of, visited)
        if node is not None:
            forest.append(node)

    logger.debug("built %d trees from %d records (%s)", len(forest), len(records), policy.value)
    return forest


def _build_tree(
    root: ProcessRecord,
    children_of: Mapping[int, list[ProcessRecord]],
    visited: set[int],
) -> ProcessNode | None:
    # Iterative: parent chains can be deeper than the recursion limit.
    # Records are collected top-down, nodes are built bottom-up.
    order: list[ProcessRecord] = []
    stack = [root]
    while stack:
        record = stack.pop()
        if record.pid in visited:
            logger.warning("pid %d reached twice while building the tree, dropping its subtree", record.pid)
            continue
        visited.add(record.pid)
        order.append(record)
        stack.extend(children_of.get(record.pid, ()))

    if not order:
        return None

    built: dict[int, ProcessNode] = {}
    for record in reversed(order):
        children = [built.pop(c.pid) for c in children_of.get(record.pid, ()) if c.pid in built]
        children.sort(key=lambda n: n.pid)
        built[record.pid] = ProcessNode(
            pid=record.pid,
            owner_id=record.owner_id,
            command_line=record.command_line,
            children=tuple(children),
        )

    return built[root.pid]


def search(forest: Iterable[ProcessNode], matches: Matcher) -> list[ProcessNode]:
    """
    Find matching nodes, depth-first in forest order.

    A matching node is returned whole and its descendants are not
    searched, so the result never holds both a node and one of its
    descendants.
    """
    result: list[ProcessNode] = []
    stack = list(reversed(list(forest)))
    while stack:
        node = stack.pop()
        if matches(node):
            result.append(node)
        else:
            stack.extend(reversed(node.children))
    return result


def owned_by(uid: int) -> Matcher:
    """Match nodes owned by the given uid."""
    return lambda node: node.owner_id == uid


def command_contains(text: str) -> Matcher:
    """Match nodes whose command line contains text (case-sensitive)."""
    return lambda node: text in node.command_line


def match_all(*matchers: Matcher) -> Matcher:
    """Combine matchers; a node must satisfy every one of them."""
    return lambda node: all(matcher(node) for matcher in matchers)
