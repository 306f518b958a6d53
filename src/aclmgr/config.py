"""Runtime configuration and logging setup for aclmgr."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass

CONTROL_FILE = "/media/internal/.acl-control"
PROC_ROOT = "/proc"
SETTLE_INTERVAL = 0.5  # seconds

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def settle_seconds(value: float) -> float:
    """Clamp a settle interval to >= 0; NaN and infinity give the default."""
    if not math.isfinite(value):
        return SETTLE_INTERVAL
    return max(0.0, value)


@dataclass
class Config:
    """Paths and timings for the scanner and coordinator."""

    control_file: str = CONTROL_FILE
    proc_root: str | None = None  # None means the live process table
    settle_interval: float = SETTLE_INTERVAL
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        self.settle_interval = settle_seconds(self.settle_interval)

    @classmethod
    def from_env(cls) -> Config:
        """Build a Config from ACLMGR_* environment variables."""
        try:
            settle = float(os.getenv("ACLMGR_SETTLE_INTERVAL", str(SETTLE_INTERVAL)))
        except ValueError:
            settle = SETTLE_INTERVAL
        return cls(
            control_file=os.getenv("ACLMGR_CONTROL_FILE") or CONTROL_FILE,
            proc_root=os.getenv("ACLMGR_PROC_ROOT") or None,
            settle_interval=settle,
            log_level=os.getenv("ACLMGR_LOG_LEVEL", "WARNING").upper(),
        )


def configure_logging(level: str | int = "WARNING") -> None:
    """Send aclmgr logs to stderr at the given level."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("aclmgr").setLevel(level)
