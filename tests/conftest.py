"""Shared pytest fixtures."""

import logging
from contextlib import contextmanager
from types import SimpleNamespace
from unittest import mock

import psutil
import pytest

from ptree.logging_config import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_ptree_logger():
    """Undo configure_logging() so caplog sees ptree records in every test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def make_process():
    """Factory for stand-ins of psutil.Process objects."""

    def factory(pid, ppid=1, uid=1000, cmdline=None, name="proc", status="sleeping", error=None):
        proc = mock.MagicMock()
        proc.pid = pid
        proc.as_dict.return_value = {
            "pid": pid,
            "ppid": ppid,
            "name": name,
            "status": status,
            "cmdline": cmdline if cmdline is not None else [f"/usr/bin/{name}"],
            "uids": SimpleNamespace(real=uid, effective=uid, saved=uid) if uid is not None else None,
        }
        if error is not None:
            proc.as_dict.side_effect = error
        return proc

    return factory


@pytest.fixture
def process_table():
    """
    Patch psutil so the scanner sees the given processes.

    Extra pids are listed by psutil.pids() but have no process behind
    them, like a process that exits between listing and reading.
    """

    @contextmanager
    def patch(procs, extra_pids=()):
        by_pid = {proc.pid: proc for proc in procs}

        def lookup(pid):
            if pid not in by_pid:
                raise psutil.NoSuchProcess(pid)
            return by_pid[pid]

        pids = sorted(by_pid) + list(extra_pids)
        with mock.patch("ptree.scanner.psutil.pids", return_value=pids), mock.patch(
            "ptree.scanner.psutil.Process", side_effect=lookup
        ):
            yield

    return patch
