"""Stop/start coordination for the ACL process group."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from aclmgr.config import SETTLE_INTERVAL, Config, settle_seconds
from aclmgr.models import (
    MSG_NOT_DETECTED,
    MSG_RESUMED,
    MSG_RUNNING,
    MSG_STOPPED,
    CoordinatorState,
    SystemStatus,
    ToggleCommand,
)
from aclmgr.scanner import ProcessScanner
from aclmgr.sink import CommandSink, FileCommandSink

logger = logging.getLogger(__name__)


class ToggleCoordinator:
    """
    Sends stop/start requests to the helper daemon and reports the outcome.

    The daemon acts asynchronously and never acknowledges a request, so each
    request waits one settle interval and checks the process table. If the
    group has not reached the requested state yet, it waits a second interval
    and reports the requested state anyway.

    Calls block for up to two settle intervals. Callers must not issue
    overlapping requests.
    """

    def __init__(
        self,
        scanner: ProcessScanner,
        sink: CommandSink,
        settle_interval: float = SETTLE_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the ToggleCoordinator.

        Args:
            scanner: Scanner used to observe the process group.
            sink: Channel the stop/start commands are written to.
            settle_interval: Seconds to wait after sending a command.
            sleep: Blocking sleep function.
        """
        self._scanner = scanner
        self._sink = sink
        self._settle_interval = settle_seconds(settle_interval)
        self._sleep = sleep
        self._status = SystemStatus()
        self._state = CoordinatorState.UNKNOWN

    @classmethod
    def from_config(cls, config: Config, sink: CommandSink | None = None) -> ToggleCoordinator:
        """Build a coordinator wired to the configured paths."""
        return cls(
            ProcessScanner(config.proc_root),
            sink if sink is not None else FileCommandSink(config.control_file),
            settle_interval=config.settle_interval,
        )

    @property
    def status(self) -> SystemStatus:
        return self._status

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def scanner(self) -> ProcessScanner:
        return self._scanner

    def refresh(self) -> SystemStatus:
        """Scan once and report whether the group is running."""
        running = self._scanner.any_target_running()
        if running:
            self._set(CoordinatorState.RUNNING, MSG_RUNNING, confirmed=True)
        else:
            self._set(CoordinatorState.STOPPED, MSG_NOT_DETECTED, confirmed=True)
        return self._status

    def request_stop(self) -> SystemStatus:
        """Ask the daemon to stop the group. Always ends reporting it stopped."""
        return self._toggle(ToggleCommand.STOP)

    def request_start(self) -> SystemStatus:
        """Ask the daemon to resume the group. Always ends reporting it running."""
        return self._toggle(ToggleCommand.START)

    def _toggle(self, command: ToggleCommand) -> SystemStatus:
        want_running = command is ToggleCommand.START
        if not self._sink.send(command):
            logger.warning("%s request may not reach the helper daemon", command.token)

        self._sleep(self._settle_interval)
        confirmed = self._scanner.any_target_running() == want_running
        if not confirmed:
            # Still settling; the result is reported regardless
            logger.debug("%s not observed yet, waiting another interval", command.token)
            self._sleep(self._settle_interval)

        if want_running:
            self._set(CoordinatorState.RUNNING, MSG_RESUMED, confirmed)
        else:
            self._set(CoordinatorState.STOPPED, MSG_STOPPED, confirmed)
        logger.info("%s (observed: %s)", self._status.message, confirmed)
        return self._status

    def _set(self, state: CoordinatorState, message: str, confirmed: bool) -> None:
        self._state = state
        self._status.running = state is CoordinatorState.RUNNING
        self._status.message = message
        self._status.confirmed = confirmed
