"""Shared fixtures for aclmgr tests."""

from __future__ import annotations

from pathlib import Path

import pytest


class FakeProcTable:
    """A procfs-shaped directory tree under a temporary path."""

    def __init__(self, root: Path) -> None:
        self.root = root
        # Non-pid entries that a real /proc also has
        (root / "self").mkdir()
        (root / "sys").mkdir()
        (root / "uptime").write_text("1.0 1.0\n")

    def add(self, pid: int, cmdline: bytes, state: str = "S", comm: str | None = None) -> None:
        proc_dir = self.root / str(pid)
        proc_dir.mkdir()
        (proc_dir / "cmdline").write_bytes(cmdline)
        if comm is None:
            comm = cmdline.split(b"\0")[0].rsplit(b"/", 1)[-1].decode()[:15] or "proc"
        self.write_stat(pid, f"{pid} ({comm}) {state} 1 {pid} {pid} 0 -1 4194560 0 0 0 0\n")

    def write_stat(self, pid: int, line: str) -> None:
        (self.root / str(pid) / "stat").write_text(line)

    def set_state(self, pid: int, state: str, comm: str = "proc") -> None:
        self.write_stat(pid, f"{pid} ({comm}) {state} 1 {pid} {pid} 0 -1\n")

    def remove_stat(self, pid: int) -> None:
        (self.root / str(pid) / "stat").unlink()

    def remove_cmdline(self, pid: int) -> None:
        (self.root / str(pid) / "cmdline").unlink()


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProcTable:
    """An empty fake process table."""
    root = tmp_path / "proc"
    root.mkdir()
    return FakeProcTable(root)


@pytest.fixture
def acl_proc(fake_proc: FakeProcTable) -> FakeProcTable:
    """A fake process table with the three ACL processes running among others."""
    fake_proc.add(1, b"/sbin/init\0")
    fake_proc.add(100, b"/usr/bin/omww-proxy\0--port\x005555\0")
    fake_proc.add(101, b"/usr/sbin/omww-service-mngr\0")
    fake_proc.add(102, b"/usr/bin/vfb-agent\0-d\0")
    fake_proc.add(200, b"/usr/bin/LunaSysMgr\0")
    return fake_proc
