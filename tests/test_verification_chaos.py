"""Verification Test: processes starting and exiting while ptree scans.

A scan must never crash because a process vanished or turned into a zombie
between being listed and being read; such processes are either left out
with a warning or shown as they were.
"""

import os
import random
import subprocess
import sys
import time

import psutil
import pytest

from ptree.scanner import list_processes
from ptree.tree import RootPolicy, build_forest, search

SLEEPER = [sys.executable, "-c", "import time; time.sleep(60)"]


def find_self(forest):
    """Return the node for this test process."""
    matches = search(forest, lambda node: node.pid == os.getpid())
    assert len(matches) == 1
    return matches[0]


def stop_all(processes):
    for p in processes:
        if p.poll() is None:
            p.terminate()
    for p in processes:
        try:
            p.wait(timeout=2.0)
        except subprocess.TimeoutExpired:
            p.kill()
            p.wait()


class TestChaosMonkey:
    """Chaos Monkey verification suite tests."""

    def test_children_appear_under_this_process(self):
        """Test freshly started children are nested under their parent."""
        processes = [subprocess.Popen(SLEEPER) for _ in range(5)]

        try:
            forest = build_forest(list_processes().records)
            me = find_self(forest)

            child_pids = {child.pid for child in me.children}
            assert {p.pid for p in processes} <= child_pids
            assert [child.pid for child in me.children] == sorted(child_pids)
        finally:
            stop_all(processes)

    def test_scan_survives_process_termination(self):
        """Test scanning while processes are killed mid-scan never raises."""
        processes = [subprocess.Popen(SLEEPER) for _ in range(30)]

        try:
            for p in random.sample(processes, 15):
                p.terminate()
                try:
                    snapshot = list_processes()
                except Exception as e:
                    pytest.fail(f"Scan crashed with exception: {e}")

                forest = build_forest(snapshot.records)
                assert find_self(forest) is not None
        finally:
            stop_all(processes)

    def test_rapid_churn(self):
        """Test repeated scans stay consistent while processes come and go."""
        processes = []
        start_time = time.time()

        try:
            while time.time() - start_time < 2.0:
                processes.extend(subprocess.Popen(SLEEPER) for _ in range(3))

                alive = [p for p in processes if p.poll() is None]
                for p in random.sample(alive, min(2, len(alive))):
                    p.terminate()

                snapshot = list_processes()
                for pid, record in snapshot.records.items():
                    assert pid == record.pid

                forest = build_forest(snapshot.records)
                pids = [node.pid for root in forest for node in root.walk()]
                assert len(pids) == len(set(pids))
        finally:
            stop_all(processes)

    @pytest.mark.skipif(not sys.platform.startswith("linux"), reason="zombie states differ by platform")
    def test_zombie_is_flagged(self):
        """Test an exited but unreaped child is shown as a zombie."""
        p = subprocess.Popen([sys.executable, "-c", "pass"])

        try:
            deadline = time.time() + 10.0
            while psutil.Process(p.pid).status() != psutil.STATUS_ZOMBIE:
                if time.time() > deadline:
                    pytest.fail("child never became a zombie")
                time.sleep(0.05)

            snapshot = list_processes()
            forest = build_forest(snapshot.records, RootPolicy.PARENT_ABSENT)

            assert p.pid in snapshot.records
            assert snapshot.records[p.pid].command_line.endswith("zombie!")
            assert p.pid in {child.pid for child in find_self(forest).children}
        finally:
            p.wait()
