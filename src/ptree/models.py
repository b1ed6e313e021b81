"""Data models for ptree."""

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Flat record of one process as read from the process table."""

    pid: int
    parent_id: int
    owner_id: int  # Real uid
    command_line: str


@dataclass(slots=True, frozen=True)
class ProcessNode:
    """Immutable node of a process tree.

    Children are ordered by ascending pid and belong to this node only.
    """

    pid: int
    owner_id: int
    command_line: str
    children: tuple["ProcessNode", ...] = ()

    @property
    def has_children(self) -> bool:
        """Check if the node has any children."""
        return bool(self.children)

    def walk(self) -> Iterator["ProcessNode"]:
        """Iterate over this node and its descendants, depth-first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


Forest = list[ProcessNode]
