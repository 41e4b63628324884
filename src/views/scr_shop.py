from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Select

from utils import config
from utils.messages import CartChangedMessage
from utils.pure import filter_products, money
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal

STOCK_FILTERS = [
    ("All products", ""),
    ("Low stock", "lowstock"),
    ("Out of stock", "outofstock"),
]


class ShopScreen(BaseScreen):
    """
    Catalog with search and stock filter. Enter on a row opens the product.
    """

    # footer hints only, enter is handled by DataTable.RowSelected
    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-search"):
            yield Input(id="input-search", placeholder="Search products...")
            yield Select(STOCK_FILTERS, value="", allow_blank=False, id="select-filter")
            yield Button("Clear", id="btn-clear")
        yield DataTable(id="table-products")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Description", "Price", "Stock")
        self.query_one("#input-search").focus()

    def action_noop(self) -> None:
        pass

    @on(Input.Changed, "#input-search")
    @on(Select.Changed, "#select-filter")
    @on(ScreenResume)
    def handle_query_change(self) -> None:
        self.update_results()

    @on(Button.Pressed, "#btn-clear")
    def handle_clear(self) -> None:
        self.query_one("#input-search", Input).value = ""
        self.query_one("#select-filter", Select).value = ""

    def update_results(self) -> None:
        query = self.query_one("#input-search", Input).value
        stock_filter = self.query_one("#select-filter", Select).value
        products = filter_products(
            self.app.state.products, query, stock_filter, config.low_stock_threshold()
        )

        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            stock = "Out of stock" if p.stock == 0 else str(p.stock)
            table.add_row(p.id, p.name, p.description, money(p.price), stock)

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        pid = int(event.data_table.get_row(event.row_key)[0])
        if await self.app.push_screen_wait(ProdDetailModal(pid)):
            self.post_message(CartChangedMessage())
            self.update_results()
