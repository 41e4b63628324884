from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label

import db.crud
from db.errors import StoreError
from db.models import Booking, BookingStatus
from utils.messages import BoardChangedMessage
from views.base_screen import BaseScreen


class BookingsScreen(BaseScreen):
    """
    Request a service booking; admins confirm or cancel requests.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-booking-form"):
            yield Label("Request Booking")
            with Horizontal():
                yield Input(placeholder="Service (e.g. Consultation)", id="input-service")
                yield Input(placeholder="Date (YYYY-MM-DD HH:MM)", id="input-date")
                yield Button("Request", id="btn-request", variant="primary")
        yield DataTable(id="table-bookings")
        with Horizontal(id="hort-admin-actions"):
            yield Button("Confirm", id="btn-confirm", variant="success")
            yield Button("Cancel", id="btn-cancel", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Service", "Date", "Customer", "Status")

    @on(ScreenResume)
    @on(BoardChangedMessage)
    def handle_reload(self) -> None:
        state = self.app.state
        self.query_one("#div-booking-form").display = state.user is not None
        self.query_one("#hort-admin-actions").display = state.is_admin

        table = self.query_one(DataTable)
        table.clear()
        for b in db.crud.visible_bookings(state):
            table.add_row(b.id, b.service, b.date, b.customer_name, b.status.value)

    def _selected(self) -> Optional[Booking]:
        table = self.query_one(DataTable)
        if table.row_count == 0 or table.cursor_row is None:
            return None
        bid = int(table.get_row_at(table.cursor_row)[0])
        return next((b for b in self.app.state.bookings if b.id == bid), None)

    @on(Button.Pressed, "#btn-request")
    @work(exclusive=True)
    async def handle_request(self) -> None:
        service = self.query_one("#input-service", Input)
        date = self.query_one("#input-date", Input)
        try:
            await db.crud.create_booking(self.app.state, service.value, date.value)
        except StoreError as e:
            self.report(e)
            return
        service.value = ""
        date.value = ""
        self.notify("Booking requested.")
        self.post_message(BoardChangedMessage())

    @on(Button.Pressed, "#btn-confirm")
    @on(Button.Pressed, "#btn-cancel")
    @work(exclusive=True)
    async def handle_status(self, event: Button.Pressed) -> None:
        booking = self._selected()
        if booking is None:
            self.notify("Select a booking first.", severity="warning")
            return
        status = (
            BookingStatus.CONFIRMED
            if event.button.id == "btn-confirm"
            else BookingStatus.CANCELLED
        )
        try:
            await db.crud.update_booking_status(self.app.state, booking.id, status)
        except StoreError as e:
            self.report(e)
            return
        self.post_message(BoardChangedMessage())
