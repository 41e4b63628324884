from math import ceil
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Label, MarkdownViewer

import db.crud
from db.errors import StoreError
from db.models import Order, OrderStatus
from utils.messages import NewOrderMessage
from utils.pure import generate_markdown_table, money
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal

PAGE_SIZE = 5

# button id -> status it requests
STATUS_BUTTONS = {
    "btn-ship": OrderStatus.SHIPPED,
    "btn-deliver": OrderStatus.DELIVERED,
    "btn-cancel": OrderStatus.CANCELLED,
}


class OrdersScreen(BaseScreen):
    """
    Orders newest first: everything for admins, own orders for customers.

    Layout:
    - Markdown detail of the highlighted order on top.
    - Orders table below, 5 per page with Prev/Next.
    - Status buttons, enabled only for transitions the user may make.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1, init=False)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("<", id="btn-prev")
            yield Label(" 1 / 1 ", id="label-page")
            yield Button(">", id="btn-next")
            yield Button("Mark Shipped", id="btn-ship")
            yield Button("Mark Delivered", id="btn-deliver", variant="warning")
            yield Button("Cancel Order", id="btn-cancel", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Customer", "Status", "Total")

    def action_noop(self) -> None:
        pass

    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self) -> None:
        self._load_orders()

    def watch_page_idx(self, old: int, new: int) -> None:
        self._load_orders()

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    def _load_orders(self) -> None:
        orders = db.crud.visible_orders(self.app.state)
        self.page_cnt = max(ceil(len(orders) / PAGE_SIZE), 1)
        if self.page_idx > self.page_cnt:
            self.page_idx = self.page_cnt
            return  # watcher reloads

        start = (self.page_idx - 1) * PAGE_SIZE
        self._orders = orders[start : start + PAGE_SIZE]

        table = self.query_one(DataTable)
        table.clear()
        for o in self._orders:
            table.add_row(
                o.id, o.created_at[:19].replace("T", " "), o.customer_name,
                o.status.value, money(o.total),
            )
        self.query_one("#label-page", Label).update(f" {self.page_idx} / {self.page_cnt} ")
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt

        if self._orders:
            table.move_cursor(row=0)
        self._render_detail(self._selected())

    def _selected(self) -> Optional[Order]:
        table = self.query_one(DataTable)
        if table.row_count == 0 or table.cursor_row is None:
            return None
        oid = int(table.get_row_at(table.cursor_row)[0])
        return next((o for o in self._orders if o.id == oid), None)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self._render_detail(self._selected())

    def _render_detail(self, order: Optional[Order]) -> None:
        allowed = db.crud.allowed_order_statuses(self.app.state, order) if order else set()
        for btn_id, status in STATUS_BUTTONS.items():
            btn = self.query_one(f"#{btn_id}", Button)
            btn.display = status in allowed
        viewer = self.query_one("#md-order-detail", MarkdownViewer)

        if not order:
            viewer.document.update("### No orders found.")
            return

        header = (
            f"### Order #{order.id}\n"
            f"Customer: {order.customer_name} ({order.customer})  \n"
            f"Date: {order.created_at}  \n"
            f"Status: **{order.status.value}**"
        )
        if order.details.get("phone"):
            header += f"  \nPhone: {order.details['phone']}"
        rows = [
            [it.name, it.qty, money(it.price), money(it.line_total)] for it in order.items
        ]
        table = generate_markdown_table(
            ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
        )
        viewer.document.update(
            f"{header}\n\n{table}\n\n**Total:** {money(order.total)}"
        )

    @on(Button.Pressed, "#btn-ship")
    @on(Button.Pressed, "#btn-deliver")
    @on(Button.Pressed, "#btn-cancel")
    @work(exclusive=True)
    async def handle_status_change(self, event: Button.Pressed) -> None:
        order = self._selected()
        if order is None:
            return
        status = STATUS_BUTTONS[event.button.id]
        if status == OrderStatus.CANCELLED and not await self.app.push_screen_wait(
            DialogModal("Cancel order?", "Yes", "No", tone="error")
        ):
            return

        try:
            await db.crud.update_order_status(self.app.state, order.id, status)
        except StoreError as e:
            self.report(e)
            return
        self.notify(f"Order {order.id} is now {status.value}.")
        self.post_message(NewOrderMessage())
