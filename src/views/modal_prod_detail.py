from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

import db.crud
from db.errors import StoreError
from db.models import CartItem, Product
from utils.pure import generate_markdown_table, money


class ProdDetailModal(ModalScreen[bool]):
    """
    Product detail with a quantity picker.
    Adds to the cart, or sets the quantity when the product is already in it.
    Dismisses with True if the cart changed.
    """

    order_qty = reactive(1)

    def __init__(self, pid: int) -> None:
        super().__init__()

        self._pid = pid
        self._prod: Product | None = None
        self._existing_cart_item: CartItem | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        state = self.app.state
        try:
            self._prod = db.crud.get_product(state, self._pid)
        except StoreError as e:
            self.notify(str(e), severity="error")
            self.dismiss(False)
            return

        rows = [
            ["Name", self._prod.name],
            ["Description", self._prod.description],
            ["Price", money(self._prod.price)],
            ["In stock", self._prod.stock],
            ["Image", self._prod.image or "-"],
        ]
        md = f"### {self._prod.name}\n\n" + generate_markdown_table(
            ["Attribute", "Value"], rows, ["l", "l"]
        )
        await self.query_one(MarkdownViewer).document.update(md)

        btn = self.query_one("#btn-addcart", Button)
        if self._prod.stock < 1:
            btn.label = "Out of Stock"
            btn.disabled = True
            btn.variant = "warning"
        if state.user is None:
            btn.label = "Login to buy"
            btn.disabled = True

        self.query_one("#input-order-qty").validators = [
            Number(minimum=1, maximum=max(self._prod.stock, 1))
        ]

        self._existing_cart_item = next(
            (c for c in state.cart if c.id == self._pid), None
        )
        if self._existing_cart_item:
            self.order_qty = self._existing_cart_item.qty
            btn.label = "Update Cart"

        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.value.isdigit()
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def watch_order_qty(self, qty: int) -> None:
        stock = self._prod.stock if self._prod else 1
        self.query_one("#btn-sub-qty", Button).disabled = qty <= 1
        self.query_one("#btn-add-qty", Button).disabled = qty >= stock
        qty_input = self.query_one("#input-order-qty", Input)
        if qty_input.value != str(qty):
            qty_input.value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        if self.order_qty > 1:
            self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        state = self.app.state
        try:
            if self._existing_cart_item is None:
                await db.crud.add_to_cart(state, self._pid, self.order_qty)
                self.app.notify("Item added to cart.")
            else:
                await db.crud.update_cart_qty(state, self._pid, self.order_qty)
                self.app.notify("Updated cart item quantity.")
        except StoreError as e:
            self.notify(str(e), severity="error")
            return

        self.dismiss(True)
