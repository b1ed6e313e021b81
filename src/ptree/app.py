"""ptree - command line entry point."""

import logging
import os
import sys

import click
from rich.console import Console

from ptree.exceptions import ScanError
from ptree.logging_config import configure_logging
from ptree.render import TreeRenderer
from ptree.scanner import list_processes
from ptree.tree import (
    Matcher,
    RootPolicy,
    build_forest,
    command_contains,
    match_all,
    owned_by,
    search,
)

logger = logging.getLogger(__name__)


def terminal_width() -> int:
    """Get the terminal width in columns, 80 if it can't be determined."""
    return Console().width or 80


def current_uid() -> int | None:
    """Get the effective uid of this process, or None where uids don't exist."""
    geteuid = getattr(os, "geteuid", None)
    return geteuid() if geteuid is not None else None


def build_matcher(pattern: str | None, uid: int | None) -> Matcher:
    """Combine the command line and ownership filters into one matcher."""
    matchers: list[Matcher] = []
    if uid is not None:
        matchers.append(owned_by(uid))
    if pattern:
        matchers.append(command_contains(pattern))
    return match_all(*matchers)


def _silence_stdout() -> None:
    """Point stdout at devnull so the interpreter's final flush can't fail."""
    try:
        fd = sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        # No file descriptor behind stdout (e.g. captured output)
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("pattern", required=False)
@click.option(
    "-a",
    "--all-users",
    is_flag=True,
    help="Show processes of all users, not only your own.",
)
@click.option(
    "--roots",
    type=click.Choice([policy.value for policy in RootPolicy]),
    default=RootPolicy.PARENT_ABSENT.value,
    show_default=True,
    envvar="PTREE_ROOTS",
    help="Which processes start a tree: parent not in the snapshot, parent pid 0, or pid 1 only.",
)
@click.option(
    "-w",
    "--width",
    type=click.IntRange(min=1),
    envvar="PTREE_WIDTH",
    help="Output width in columns. Defaults to the terminal width.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug output.")
@click.option("-q", "--quiet", is_flag=True, help="Hide warnings about unreadable processes.")
def cli(
    pattern: str | None,
    all_users: bool,
    roots: str,
    width: int | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Show the process tree, optionally only subtrees whose command line contains PATTERN."""
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet cannot be used together")

    if verbose:
        configure_logging(logging.DEBUG)
    elif quiet:
        configure_logging(logging.ERROR)
    else:
        configure_logging(logging.WARNING)

    try:
        snapshot = list_processes()
    except ScanError as exc:
        click.echo(f"ptree: {exc}", err=True)
        sys.exit(1)

    forest = build_forest(snapshot.records, RootPolicy(roots))
    matched = search(forest, build_matcher(pattern, None if all_users else current_uid()))
    logger.debug("%d subtrees matched", len(matched))

    stdout = sys.stdout
    renderer = TreeRenderer(width or terminal_width(), stdout)
    try:
        renderer.render(matched)
        stdout.flush()
    except BrokenPipeError:
        # Reader went away (e.g. piped into head)
        _silence_stdout()


def main() -> None:
    """Entry point for the ptree command."""
    cli(prog_name="ptree")


if __name__ == "__main__":
    main()
