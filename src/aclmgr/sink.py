"""Command channel to the privileged ACL helper daemon."""

from __future__ import annotations

import logging
import os
from typing import Protocol

from aclmgr.config import CONTROL_FILE
from aclmgr.models import ToggleCommand

logger = logging.getLogger(__name__)


class CommandSink(Protocol):
    """One-way, unacknowledged channel holding at most one pending command."""

    def send(self, command: ToggleCommand) -> bool:
        """Deliver a command. Returns False if it could not be written."""
        ...


class FileCommandSink:
    """
    Writes commands to the control file watched by the helper daemon.

    Each write truncates the file, so a newer command replaces one the
    daemon has not picked up yet. Write failures are logged, never raised.
    """

    def __init__(self, path: str | os.PathLike[str] = CONTROL_FILE) -> None:
        self._path = path

    @property
    def path(self) -> str | os.PathLike[str]:
        return self._path

    def send(self, command: ToggleCommand) -> bool:
        try:
            with open(self._path, "w", encoding="ascii") as f:
                f.write(f"{command.token}\n")
        except OSError as exc:
            logger.warning("Could not write %r to %s: %s", command.token, self._path, exc)
            return False
        logger.info("Sent %r to %s", command.token, self._path)
        return True


class MemoryCommandSink:
    """Keeps sent commands in memory instead of writing them anywhere."""

    def __init__(self) -> None:
        self.sent: list[ToggleCommand] = []

    @property
    def last(self) -> ToggleCommand | None:
        return self.sent[-1] if self.sent else None

    def send(self, command: ToggleCommand) -> bool:
        logger.info("Dry run: would send %r", command.token)
        self.sent.append(command)
        return True
