"""aclmgr - Textual front-end."""

from enum import Enum

from textual import work
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import Button, DataTable, Footer, Static

from aclmgr.config import Config
from aclmgr.coordinator import ToggleCoordinator
from aclmgr.models import ProcessRecord, ProcessState, SystemStatus

INSTRUCTIONS = (
    "Stop ACL before running apps with compatibility issues\n"
    "Start ACL again when done to restore Android app support"
)

STATE_LABELS = {
    ProcessState.RUNNING: "run",
    ProcessState.STOPPED: "stop",
    ProcessState.UNKNOWN: "?",
}


class Request(Enum):
    """Operations run by the request worker."""

    REFRESH = "refresh"
    STOP = "stop"
    START = "start"


class StatusLine(Static):
    """Status message written by the coordinator."""

    DEFAULT_CSS = """
    StatusLine {
        height: 3;
        content-align: center middle;
        color: $accent;
        text-style: bold;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize StatusLine."""
        super().__init__(*args, **kwargs)
        self._message: str = ""
        self._running: bool = False

    @property
    def message(self) -> str:
        return self._message

    @property
    def running(self) -> bool:
        return self._running

    def show(self, status: SystemStatus) -> None:
        """Display a status snapshot."""
        self._message = status.message
        self._running = status.running
        try:
            self.update(status.message)
        except Exception:
            pass  # Widget not mounted yet


class AclProcessTable(Container):
    """Container for the table of detected ACL processes."""

    DEFAULT_CSS = """
    AclProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize AclProcessTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="acl-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#acl-table", DataTable)
        table.cursor_type = "row"
        table.add_column("PID", key="pid", width=8)
        table.add_column("S", key="state", width=5)
        table.add_column("Command", key="command")

    def update_processes(self, records: set[ProcessRecord]) -> None:
        """
        Update the table with a fresh scan.

        Rows of processes that are gone are removed, existing rows are
        updated in place.
        """
        table = self.query_one("#acl-table", DataTable)
        new_pids = {record.pid for record in records}

        for pid in self._current_pids - new_pids:
            try:
                table.remove_row(str(pid))
            except Exception:
                pass  # Row may not exist

        for record in sorted(records, key=lambda r: r.pid):
            row_key = str(record.pid)
            try:
                if record.pid in self._current_pids:
                    table.update_cell(row_key, "state", STATE_LABELS[record.state])
                    table.update_cell(row_key, "command", record.command_line[:60])
                else:
                    table.add_row(
                        row_key,
                        STATE_LABELS[record.state],
                        record.command_line[:60],
                        key=row_key,
                    )
            except Exception:
                pass  # Row changed underneath us

        self._current_pids = new_pids


class AclManagerApp(App):
    """Main aclmgr application."""

    TITLE = "ACL Manager"
    SUB_TITLE = "Android Compatibility Layer Control"

    CSS = """
    Screen {
        layout: vertical;
    }

    #buttons {
        height: auto;
        align: center middle;
        padding: 1;
    }

    #buttons Button {
        margin: 0 2;
        min-width: 16;
    }

    #instructions {
        height: auto;
        content-align: center middle;
        padding: 1;
    }
    """

    BINDINGS = [
        ("s", "stop_acl", "Stop ACL"),
        ("r", "start_acl", "Start ACL"),
        ("f5", "refresh", "Refresh"),
        ("q", "quit", "Quit"),
        ("escape", "quit", "Quit"),
    ]

    def __init__(self, coordinator: ToggleCoordinator | None = None) -> None:
        """Initialize the AclManagerApp."""
        super().__init__()
        self._coordinator = coordinator or ToggleCoordinator.from_config(Config.from_env())
        self._busy = False

    @property
    def coordinator(self) -> ToggleCoordinator:
        return self._coordinator

    @property
    def busy(self) -> bool:
        return self._busy

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Horizontal(
            Button("Stop ACL", id="stop", variant="error"),
            Button("Start ACL", id="start", variant="success"),
            Button("Exit", id="exit"),
            id="buttons",
        )
        yield StatusLine(id="status")
        yield AclProcessTable()
        yield Static(INSTRUCTIONS, id="instructions")
        yield Footer()

    def on_mount(self) -> None:
        """Read the initial ACL state."""
        self._begin(Request.REFRESH)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Dispatch button presses."""
        if event.button.id == "stop":
            self.action_stop_acl()
        elif event.button.id == "start":
            self.action_start_acl()
        elif event.button.id == "exit":
            self.exit()

    def action_stop_acl(self) -> None:
        """Request the ACL be stopped."""
        self._begin(Request.STOP)

    def action_start_acl(self) -> None:
        """Request the ACL be resumed."""
        self._begin(Request.START)

    def action_refresh(self) -> None:
        """Rescan the process table."""
        self._begin(Request.REFRESH)

    def _begin(self, request: Request) -> None:
        # Requests block for up to a second; only one may run at a time
        if self._busy:
            return
        self._set_busy(True)
        self._run_request(request)

    @work(thread=True, exclusive=True, group="toggle")
    def _run_request(self, request: Request) -> None:
        """Run a blocking request and the table scan off the event loop."""
        try:
            if request is Request.STOP:
                status = self._coordinator.request_stop()
            elif request is Request.START:
                status = self._coordinator.request_start()
            else:
                status = self._coordinator.refresh()
            snapshot = SystemStatus(status.running, status.message, status.confirmed)
            records = self._coordinator.scanner.scan()
            self.call_from_thread(self._show, snapshot, records)
        finally:
            self.call_from_thread(self._set_busy, False)

    def _set_busy(self, busy: bool) -> None:
        self._busy = busy
        for button_id in ("#stop", "#start"):
            try:
                self.query_one(button_id, Button).disabled = busy
            except Exception:
                pass

    def _show(self, status: SystemStatus, records: set[ProcessRecord]) -> None:
        """Update the UI with results posted by the worker."""
        try:
            self.query_one("#status", StatusLine).show(status)
        except Exception:
            pass
        try:
            self.query_one(AclProcessTable).update_processes(records)
        except Exception:
            pass


def main() -> None:
    """Entry point for the aclmgr UI."""
    app = AclManagerApp()
    app.run()


if __name__ == "__main__":
    main()
