from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, TextArea

import db.crud
from db.errors import StoreError
from utils.messages import BoardChangedMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class NotificationsScreen(BaseScreen):
    """Announcements, newest first. Admins post and delete them."""

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-notif-form"):
            yield Label("Create Notification")
            yield Input(placeholder="Title", id="input-title")
            yield TextArea(id="textarea-message")
            with Horizontal():
                yield Button("Post", id="btn-post", variant="primary")
                yield Button("Delete Selected", id="btn-delete", variant="error")
        yield DataTable(id="table-notifications")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Posted", "Title", "Message")

    @on(ScreenResume)
    @on(BoardChangedMessage)
    def handle_reload(self) -> None:
        self.query_one("#div-notif-form").display = self.app.state.is_admin
        table = self.query_one(DataTable)
        table.clear()
        for n in self.app.state.notifications:
            table.add_row(n.id, n.posted_at[:16].replace("T", " "), n.title, n.message)

    @on(Button.Pressed, "#btn-post")
    @work(exclusive=True)
    async def handle_post(self) -> None:
        title = self.query_one("#input-title", Input)
        message = self.query_one("#textarea-message", TextArea)
        try:
            await db.crud.post_notification(self.app.state, title.value, message.text)
        except StoreError as e:
            self.report(e)
            return
        title.value = ""
        message.clear()
        self.post_message(BoardChangedMessage())

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return
        nid = int(table.get_row_at(table.cursor_row)[0])
        if not await self.app.push_screen_wait(
            DialogModal("Delete this notification?", "Yes", "No", tone="error")
        ):
            return
        try:
            await db.crud.remove_notification(self.app.state, nid)
        except StoreError as e:
            self.report(e)
            return
        self.post_message(BoardChangedMessage())
