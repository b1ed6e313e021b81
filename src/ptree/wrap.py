"""Greedy word wrapping for command lines."""

from rich.cells import cell_len


def wrap_command_line(text: str, width: int) -> list[str]:
    """
    Wrap text into lines narrower than width terminal cells.

    Tokens are split on whitespace and each one is followed by a single
    space. A token wider than the whole budget is kept intact on a line of
    its own.

    Args:
        text: Text to wrap.
        width: Column budget, measured in terminal cells.

    Returns:
        The wrapped lines; empty if text has no tokens.
    """
    lines: list[str] = []
    used = 0

    for token in text.split():
        token_width = cell_len(token)
        if lines and used + token_width < width:
            lines[-1] += token + " "
            used += token_width + 1
        else:
            lines.append(token + " ")
            used = token_width + 1

    return lines
