from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer

import db.crud
from db.errors import StoreError
from utils.pure import cart_total, generate_markdown_table, money
from views.modal_dialog import DialogModal


class CheckoutModal(ModalScreen[bool]):
    """
    Order summary plus contact details. Dismisses with True once the order is placed.
    """

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label("Phone number (optional)")
            yield Input(placeholder="555-0100", id="input-phone")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        cart = self.app.state.cart
        rows = [
            [c.name, money(c.price), c.qty, money(c.price * c.qty)] for c in cart
        ]
        md = "### Order Summary\n\n" + generate_markdown_table(
            ["Product", "Unit Price", "Quantity", "Line Total"],
            rows,
            ["l", "r", "c", "r"],
        )
        md += f"\n\n**Total:** {money(cart_total(cart))}"
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#input-phone").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        phone = self.query_one("#input-phone", Input).value.strip()
        try:
            order = await db.crud.checkout(self.app.state, {"phone": phone})
        except StoreError as e:
            self.notify(str(e), severity="error")
            self.dismiss(False)
            return

        self.notify(f"Order placed. Your order number is {order.id}.")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)
