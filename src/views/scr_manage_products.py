from __future__ import annotations

from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label

import db.crud
from db.errors import StoreError
from utils.pure import money
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class ManageProductsScreen(BaseScreen):
    """
    Admin catalog editor: pick a row to edit it, or start a new product.
    """

    # None while creating a new product
    current_pid: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-products")
        with Vertical(id="div-product-form"):
            yield Label("New product", id="label-form-title")
            yield Input(placeholder="Name", id="input-name")
            yield Input(placeholder="Description", id="input-description")
            with Horizontal():
                yield Input(
                    placeholder="Price",
                    id="input-price",
                    type="number",
                    validators=[Number(minimum=0.0)],
                )
                yield Input(
                    placeholder="Stock",
                    id="input-stock",
                    type="integer",
                    validators=[Number(minimum=0)],
                )
            yield Input(placeholder="https://... (image)", id="input-image")
            with Horizontal(id="hort-controls"):
                yield Button("New", id="btn-new")
                yield Button("Save", id="btn-save", variant="success")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("Reset Products", id="btn-reset")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Price", "Stock")
        self.start_new()

    @on(ScreenResume)
    def render_products(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for p in self.app.state.products:
            table.add_row(p.id, p.name, money(p.price), p.stock)

    @on(DataTable.RowSelected)
    def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        pid = int(event.data_table.get_row(event.row_key)[0])
        try:
            prod = db.crud.get_product(self.app.state, pid)
        except StoreError as e:
            self.report(e)
            return
        self.current_pid = pid
        self.query_one("#label-form-title", Label).update(f"Editing #{pid}")
        self.query_one("#input-name", Input).value = prod.name
        self.query_one("#input-description", Input).value = prod.description
        self.query_one("#input-price", Input).value = f"{prod.price:.2f}"
        self.query_one("#input-stock", Input).value = str(prod.stock)
        self.query_one("#input-image", Input).value = prod.image
        self.query_one("#btn-delete", Button).disabled = False

    @on(Button.Pressed, "#btn-new")
    def start_new(self) -> None:
        self.current_pid = None
        self.query_one("#label-form-title", Label).update("New product")
        for input_id, default in [
            ("#input-name", ""),
            ("#input-description", ""),
            ("#input-price", "0"),
            ("#input-stock", "1"),
            ("#input-image", ""),
        ]:
            self.query_one(input_id, Input).value = default
        self.query_one("#btn-delete", Button).disabled = True
        self.query_one("#input-name", Input).focus()

    def _read_form(self) -> Optional[dict]:
        price_input = self.query_one("#input-price", Input)
        stock_input = self.query_one("#input-stock", Input)
        for widget in (price_input, stock_input):
            if not widget.value or not widget.is_valid:
                widget.focus()
                widget.add_class("-invalid")
                self.notify("Price and stock must be non-negative numbers.", severity="error")
                return None
        return {
            "name": self.query_one("#input-name", Input).value,
            "description": self.query_one("#input-description", Input).value,
            "price": float(price_input.value),
            "stock": int(stock_input.value),
            "image": self.query_one("#input-image", Input).value,
        }

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        form = self._read_form()
        if form is None:
            return
        try:
            if self.current_pid is None:
                prod = await db.crud.add_product(self.app.state, **form)
                self.current_pid = prod.id
                self.notify(f"Product #{prod.id} created.")
            else:
                await db.crud.update_product(self.app.state, self.current_pid, **form)
                self.notify("Product updated.")
        except StoreError as e:
            self.report(e)
            return
        self.render_products()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        if self.current_pid is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal("Delete product?", "Yes", "No", tone="error")
        ):
            return
        try:
            await db.crud.delete_product(self.app.state, self.current_pid)
        except StoreError as e:
            self.report(e)
            return
        self.start_new()
        self.render_products()

    @on(Button.Pressed, "#btn-reset")
    @work(exclusive=True)
    async def handle_reset(self) -> None:
        if not await self.app.push_screen_wait(
            DialogModal("Replace the catalog with the sample products?", "Yes", "No", tone="warning")
        ):
            return
        try:
            await db.crud.reset_products(self.app.state)
        except StoreError as e:
            self.report(e)
            return
        self.notify("Products reset to sample.")
        self.start_new()
        self.render_products()
