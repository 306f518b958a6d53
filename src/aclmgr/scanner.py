"""Process scanner for the ACL process group."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

import psutil

from aclmgr.config import PROC_ROOT
from aclmgr.models import TARGET_PATTERNS, ProcessRecord, ProcessState

logger = logging.getLogger(__name__)

CMDLINE_LIMIT = 255  # bytes of cmdline inspected per process
STOPPED_STATES = frozenset("Tt")  # stopped, tracing stop


def parse_stat_state(line: str) -> str | None:
    """
    Extract the state character from a /proc/<pid>/stat line.

    The command name may itself contain parentheses, so the state is located
    relative to the last closing parenthesis: ``<pid> (<comm>) <state> ...``.
    Returns None if the line does not have that shape.
    """
    end = line.rfind(")")
    if end < 0 or line[end + 1 : end + 2] != " ":
        return None
    state = line[end + 2 : end + 3]
    return state or None


def state_is_running(state: str | None) -> bool:
    """Only 'T' and 't' are stopped; anything else (or nothing) is running."""
    return state not in STOPPED_STATES


class ProcessScanner:
    """
    Finds ACL processes in the process table and reads their run state.

    Per-process read failures (process exited mid-scan, permission denied)
    are skipped. If the table cannot be enumerated at all the scanner sees
    no processes.
    """

    def __init__(
        self,
        proc_root: str | os.PathLike[str] | None = None,
        patterns: Iterable[bytes] = TARGET_PATTERNS,
    ) -> None:
        """
        Initialize the ProcessScanner.

        Args:
            proc_root: Root of a procfs-like tree. None uses the live /proc,
                enumerated through psutil.
            patterns: Command-line substrings that identify target processes.
        """
        self._live = proc_root is None
        self._proc_root = Path(PROC_ROOT if proc_root is None else proc_root)
        self._patterns = tuple(patterns)

    @property
    def proc_root(self) -> Path:
        return self._proc_root

    @property
    def patterns(self) -> tuple[bytes, ...]:
        return self._patterns

    def iter_pids(self) -> Iterator[int]:
        """Yield the pids currently in the process table."""
        try:
            if self._live:
                pids = psutil.pids()
            else:
                pids = sorted(
                    int(entry.name) for entry in os.scandir(self._proc_root) if entry.name.isdigit()
                )
        except OSError as exc:
            logger.debug("Cannot enumerate %s: %s", self._proc_root, exc)
            return
        yield from pids

    def read_cmdline(self, pid: int) -> bytes:
        """Read the raw cmdline of a process. Raises OSError if unreadable."""
        with open(self._proc_root / str(pid) / "cmdline", "rb") as f:
            return f.read(CMDLINE_LIMIT)

    def read_state(self, pid: int) -> str | None:
        """Read the one-character kernel state of a process, or None."""
        try:
            with open(self._proc_root / str(pid) / "stat", "rb") as f:
                line = f.readline().decode(errors="replace")
        except OSError as exc:
            logger.debug("Cannot read stat for pid %d: %s", pid, exc)
            return None
        return parse_stat_state(line)

    def matches(self, cmdline: bytes) -> bool:
        """Match the program name (argv[0]) only, never its arguments."""
        program = cmdline.split(b"\0", 1)[0]
        return any(pattern in program for pattern in self._patterns)

    def iter_targets(self) -> Iterator[tuple[int, bytes]]:
        """Lazily yield (pid, cmdline) for every process matching a target pattern."""
        for pid in self.iter_pids():
            try:
                cmdline = self.read_cmdline(pid)
            except OSError:
                # Process exited mid-scan or is not readable
                continue
            if self.matches(cmdline):
                yield pid, cmdline

    def is_state_running(self, pid: int) -> bool:
        """Return False only if the process is stopped or trace-stopped."""
        return state_is_running(self.read_state(pid))

    def scan(self) -> set[ProcessRecord]:
        """Collect a record for every target process."""
        records: set[ProcessRecord] = set()
        for pid, cmdline in self.iter_targets():
            state = self.read_state(pid)
            if state is None:
                proc_state = ProcessState.UNKNOWN
            elif state_is_running(state):
                proc_state = ProcessState.RUNNING
            else:
                proc_state = ProcessState.STOPPED
            records.add(ProcessRecord(pid=pid, cmdline=cmdline, state=proc_state))
        return records

    def any_target_running(self) -> bool:
        """True as soon as one target process is found that is not stopped."""
        for pid, _cmdline in self.iter_targets():
            if self.is_state_running(pid):
                logger.debug("Target pid %d is running", pid)
                return True
        return False
