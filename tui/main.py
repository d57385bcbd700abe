"""
Approval dashboard - terminal interface for reviewing pending submissions.
"""

import sys

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import Header, Footer, Static, Button, Input, DataTable
from textual.screen import Screen

from util.logging import logger
from burhanpur_admin.core.context import DashboardContext, build_context
from burhanpur_admin.core.schema import EntityKind
from .badge import format_badge, format_pending_button, format_rows

COLUMNS = ("Name", "Owner", "Category", "Submitted", "ID")


class ApprovalScreen(Screen):
    """Pending notifications for one kind with approve/reject controls."""

    def __init__(self, ctx: DashboardContext, kind: EntityKind = EntityKind.BUSINESS):
        super().__init__()
        self.ctx = ctx
        self.kind = kind
        self._dirty = True
        self._remove_listeners = []

    def compose(self) -> ComposeResult:
        yield Header()
        yield Container(
            Horizontal(
                Static("", id="badge", classes="badge"),
                Button(format_pending_button(EntityKind.BUSINESS, 0), id="kind-business", variant="warning"),
                Button(format_pending_button(EntityKind.PRODUCT, 0), id="kind-product", variant="warning"),
                id="badge-row",
            ),
            DataTable(id="pending-table", cursor_type="row"),
            Input(id="reject-reason", placeholder="Rejection reason (optional)"),
            Horizontal(
                Button("Approve", id="approve", variant="success"),
                Button("Reject", id="reject", variant="error"),
                Button("Refresh", id="refresh", variant="primary"),
                id="actions",
            ),
            id="approval-container",
        )
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#pending-table", DataTable)
        table.add_columns(*COLUMNS)

        for board in self.ctx.boards.values():
            self._remove_listeners.append(board.add_listener(self._mark_dirty))

        # Board listeners fire on worker threads; the UI only redraws from its own timer
        self.set_interval(0.5, self._render_if_dirty)
        self.run_worker(self.ctx.start, thread=True)

    def on_unmount(self) -> None:
        for remove in self._remove_listeners:
            remove()
        self.ctx.stop()

    def _mark_dirty(self, _view) -> None:
        self._dirty = True

    def _render_if_dirty(self) -> None:
        if not self._dirty:
            return
        self._dirty = False

        total = sum(board.pending_count for board in self.ctx.boards.values())
        self.query_one("#badge", Static).update(format_badge(total))
        for kind in EntityKind:
            button = self.query_one(f"#kind-{kind.value}", Button)
            button.label = format_pending_button(kind, self.ctx.board(kind).pending_count)
            button.variant = "primary" if kind is self.kind else "warning"

        table = self.query_one("#pending-table", DataTable)
        table.clear()
        for row in format_rows(self.ctx.board(self.kind).notifications):
            table.add_row(*row)

    def _selected_id(self):
        table = self.query_one("#pending-table", DataTable)
        if table.row_count == 0:
            return None
        row = table.get_row_at(table.cursor_row)
        return row[-1]

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id

        if button_id in ("kind-business", "kind-product"):
            self.kind = EntityKind(button_id.split("-", 1)[1])
            self._dirty = True
        elif button_id == "refresh":
            self.run_worker(lambda: self.ctx.board(self.kind).refresh(force=True), thread=True)
        elif button_id in ("approve", "reject"):
            entity_id = self._selected_id()
            if entity_id is None:
                self.notify("Nothing selected", severity="warning")
                return
            reason = self.query_one("#reject-reason", Input).value
            self.run_worker(lambda: self._run_command(button_id, entity_id, reason), thread=True)

    def _run_command(self, action: str, entity_id: str, reason: str) -> None:
        kind = self.kind
        if action == "approve":
            result = self.ctx.approvals.approve(entity_id, kind)
        else:
            result = self.ctx.approvals.reject(entity_id, kind, reason)

        severity = "information" if result.ok else "error"
        self.app.call_from_thread(self.notify, result.message, severity=severity)
        if result.ok and action == "reject":
            self.app.call_from_thread(self._clear_reason)

    def _clear_reason(self) -> None:
        self.query_one("#reject-reason", Input).value = ""

    def refresh_on_focus(self) -> None:
        for board in self.ctx.boards.values():
            board.notify_focus()


class ApprovalApp(App):
    """Burhanpur admin approval dashboard."""

    CSS = """
    .badge {
        width: 12;
        text-style: bold;
        color: red;
    }

    #badge-row, #actions {
        height: 3;
        margin-bottom: 1;
    }

    #pending-table {
        height: 1fr;
        border: solid cyan;
    }

    #reject-reason {
        margin-top: 1;
    }
    """

    TITLE = "Burhanpur Admin - Approvals"

    def __init__(self, ctx: DashboardContext = None):
        super().__init__()
        self.ctx = ctx or build_context()

    def on_mount(self) -> None:
        logger.info("Approval dashboard started")
        self.push_screen(ApprovalScreen(self.ctx))

    def on_app_focus(self) -> None:
        screen = self.screen
        if isinstance(screen, ApprovalScreen):
            screen.refresh_on_focus()

    def on_key(self, event) -> None:
        """Handle global key events."""
        if event.key == "q" and not isinstance(self.focused, Input):
            logger.info("Dashboard exit requested by user")
            self.exit(message="Dashboard exited by user request")


def main():
    """Main dashboard entry point."""
    try:
        print("🚀 Starting Burhanpur approval dashboard...")
        app = ApprovalApp()
        app.run()
    except KeyboardInterrupt:
        print("\nℹ️  Dashboard interrupted by user")
        logger.info("Dashboard exited via keyboard interrupt")
    except Exception as e:
        error_msg = f"Dashboard startup failed: {e}"
        print(f"❌ {error_msg}")
        logger.error(error_msg)
        sys.exit(1)


if __name__ == "__main__":
    main()
