"""Data models for aclmgr."""

from dataclasses import dataclass
from enum import Enum

# Command-line substrings identifying the ACL process group:
# service manager, proxy, and framebuffer agent.
TARGET_PATTERNS: tuple[bytes, ...] = (
    b"omww-service-mngr",
    b"omww-proxy",
    b"vfb-agent",
)

MSG_READY = "Ready"
MSG_RUNNING = "ACL Running"
MSG_NOT_DETECTED = "ACL Not Detected"
MSG_STOPPED = "ACL Stopped"
MSG_RESUMED = "ACL Resumed"


class ProcessState(Enum):
    """Run state of a single process as read from the kernel."""

    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"


class CoordinatorState(Enum):
    """Logical state of the whole ACL process group."""

    UNKNOWN = "unknown"
    RUNNING = "running"
    STOPPED = "stopped"


class ToggleCommand(Enum):
    """Request sent to the privileged daemon."""

    STOP = "stop"
    START = "start"

    @property
    def token(self) -> str:
        """Wire token written to the control file."""
        return self.value


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of one matched ACL process."""

    pid: int
    cmdline: bytes  # NUL-separated argv, possibly truncated
    state: ProcessState

    @property
    def is_running(self) -> bool:
        """Unknown state counts as running."""
        return self.state is not ProcessState.STOPPED

    @property
    def argv(self) -> list[str]:
        """Decoded argument list."""
        return [arg.decode(errors="replace") for arg in self.cmdline.split(b"\0") if arg]

    @property
    def command_line(self) -> str:
        return " ".join(self.argv)


@dataclass(slots=True)
class SystemStatus:
    """Status shown by the front-end. Written only by ToggleCoordinator."""

    running: bool = False
    message: str = MSG_READY
    confirmed: bool = False  # last scan agreed with the reported state
