"""Text rendering of process trees."""

import io
import sys
from collections.abc import Sequence
from typing import TextIO

from ptree.models import ProcessNode
from ptree.wrap import wrap_command_line

BRANCH = "├─"
CORNER = "└─"
BAR = "│"


class TreeRenderer:
    """
    Writes process trees with box-drawing connectors.

    Each node is shown as "<pid> <command line>", with the command line
    wrapped so no row is wider than the target width. Wrapped rows line up
    under the start of the command line.
    """

    def __init__(self, width: int, stream: TextIO | None = None) -> None:
        """
        Initialize the TreeRenderer.

        Args:
            width: Target output width in columns.
            stream: Where to write. Defaults to sys.stdout.
        """
        self._width = width
        self._stream = stream if stream is not None else sys.stdout

    @property
    def width(self) -> int:
        """Get the target output width."""
        return self._width

    def render(self, nodes: Sequence[ProcessNode]) -> None:
        """
        Write nodes and their subtrees as sibling trees.

        Raises:
            OSError: If the stream stops accepting writes (e.g. BrokenPipeError).
        """
        # Iterative: process chains can be deeper than the recursion limit
        stack = self._siblings(nodes, "")
        while stack:
            node, indent, last = stack.pop()
            self._render_node(node, indent, last)
            stack.extend(self._siblings(node.children, f"{indent}{' ' if last else BAR}  "))

    @staticmethod
    def _siblings(nodes: Sequence[ProcessNode], indent: str) -> list[tuple[ProcessNode, str, bool]]:
        """Stack entries for nodes, first sibling on top."""
        entries = [(node, indent, i == len(nodes) - 1) for i, node in enumerate(nodes)]
        entries.reverse()
        return entries

    def _render_node(self, node: ProcessNode, indent: str, last: bool) -> None:
        label = str(node.pid)
        # Columns taken by the indent, connector, pid and separating spaces
        used = len(indent) + len(BRANCH) + 1 + len(label) + 1
        lines = wrap_command_line(node.command_line, max(1, self._width - used))

        head = lines[0] if lines else ""
        self._write(f"{indent}{CORNER if last else BRANCH} {label} {head}")

        if len(lines) > 1:
            # The connector column stays blank; a bar only leads down to children
            child_bar = BAR if node.has_children else " "
            wrap_indent = f"{indent}   {child_bar}{' ' * len(label)}"
            for line in lines[1:]:
                self._write(f"{wrap_indent}{line}")

    def _write(self, row: str) -> None:
        self._stream.write(row.rstrip() + "\n")


def render_to_string(nodes: Sequence[ProcessNode], width: int) -> str:
    """Render nodes to a string instead of a stream."""
    buffer = io.StringIO()
    TreeRenderer(width, buffer).render(nodes)
    return buffer.getvalue()
