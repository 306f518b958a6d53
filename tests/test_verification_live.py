"""Verification Test: scanning the live process table.

A child process whose program name carries an ACL pattern is stopped and resumed
with real signals while the scanner watches it. Short-lived processes are
churned during scans to check exited processes are skipped.
"""

import os
import signal
import subprocess
import sys
import time

import pytest

from aclmgr.models import ProcessState
from aclmgr.scanner import ProcessScanner

pytestmark = pytest.mark.skipif(not sys.platform.startswith("linux"), reason="requires /proc")

MARKER = "vfb-agent-verification"


def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


@pytest.fixture
def fake_agent(tmp_path):
    # Only argv[0] is matched, so run the interpreter through a link named like the agent
    program = tmp_path / MARKER
    program.symlink_to(os.path.realpath(sys.executable))
    proc = subprocess.Popen([str(program), "-c", "import time; time.sleep(60)"])
    try:
        yield proc
    finally:
        try:
            os.kill(proc.pid, signal.SIGCONT)
        except ProcessLookupError:
            pass
        proc.kill()
        proc.wait(timeout=5.0)


class TestLiveProcessTable:
    """Live /proc verification suite tests."""

    def test_detects_signal_stopped_process(self, fake_agent):
        """Test SIGSTOP and SIGCONT are seen through /proc/<pid>/stat."""
        scanner = ProcessScanner()

        assert wait_for(lambda: fake_agent.pid in {r.pid for r in scanner.scan()})
        assert scanner.is_state_running(fake_agent.pid) is True

        os.kill(fake_agent.pid, signal.SIGSTOP)
        assert wait_for(lambda: scanner.is_state_running(fake_agent.pid) is False)
        records = {r.pid: r for r in scanner.scan()}
        assert records[fake_agent.pid].state is ProcessState.STOPPED

        os.kill(fake_agent.pid, signal.SIGCONT)
        assert wait_for(lambda: scanner.is_state_running(fake_agent.pid) is True)

    def test_any_target_running_sees_child(self, fake_agent):
        scanner = ProcessScanner(patterns=[MARKER.encode()])

        assert wait_for(scanner.any_target_running)

        os.kill(fake_agent.pid, signal.SIGSTOP)
        assert wait_for(lambda: not scanner.any_target_running())

    def test_exited_process_is_not_found(self, fake_agent):
        scanner = ProcessScanner(patterns=[MARKER.encode()])
        assert wait_for(scanner.any_target_running)

        fake_agent.kill()
        fake_agent.wait(timeout=5.0)

        assert scanner.scan() == set()
        assert scanner.any_target_running() is False

    def test_marker_in_arguments_is_not_matched(self):
        """Test a live process naming the agent only in its argv is ignored."""
        proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)", MARKER])
        try:
            scanner = ProcessScanner(patterns=[MARKER.encode()])
            assert wait_for(lambda: os.path.exists(f"/proc/{proc.pid}/cmdline"))
            assert proc.pid not in {r.pid for r in scanner.scan()}
        finally:
            proc.kill()
            proc.wait(timeout=5.0)

    def test_scan_survives_process_churn(self):
        """Test processes exiting mid-scan never raise."""
        processes = []
        try:
            start_time = time.time()
            while time.time() - start_time < 2.0:
                for _ in range(5):
                    p = subprocess.Popen([sys.executable, "-c", "pass"])
                    processes.append(p)
                try:
                    ProcessScanner().scan()
                    ProcessScanner().any_target_running()
                except Exception as e:
                    pytest.fail(f"Scanner crashed with exception: {e}")
        finally:
            for p in processes:
                p.kill()
                p.wait(timeout=5.0)
