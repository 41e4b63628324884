from textual import on
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import MarkdownViewer

import db.crud as crud
from utils.messages import NewOrderMessage
from utils.pure import generate_markdown_table, money
from views.base_screen import BaseScreen


class DashboardScreen(BaseScreen):
    """
    Store totals and the five most recent orders.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-dashboard", show_table_of_contents=False)

    @on(NewOrderMessage)
    @on(ScreenResume)
    def handle_reload(self) -> None:
        summary = crud.dashboard_summary(self.app.state)

        totals_md = (
            "### Dashboard\n\n"
            f"- Products: {summary['total_products']}\n"
            f"- Orders: {summary['total_orders']}\n"
            f"- Sales (excluding cancelled): {money(summary['total_sales'])}\n"
            f"- Cart Items: {summary['cart_items']}\n\n"
        )
        rows = [
            [f"#{o.id}", o.customer_name, o.status.value, money(o.total)]
            for o in summary["recent_orders"]
        ]
        recent_md = "### Recent Orders\n\n" + (
            generate_markdown_table(
                ["Order", "Customer", "Status", "Total"], rows, ["l", "l", "c", "r"]
            )
            if rows
            else "No orders yet."
        )
        self.query_one("#md-dashboard", MarkdownViewer).document.update(
            totals_md + recent_md
        )
