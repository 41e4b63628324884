from typing import Dict, Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

import db.crud
from db.models import User
from utils.logger import get_logger
from utils.messages import (
    ModeSwitchedMessage,
    NewOrderMessage,
    QuitRequestedMessage,
    UserLoginMessage,
    UserLogoutMessage,
)
from utils.state import AppState
from views.base_screen import STYLESHEET
from views.scr_bookings import BookingsScreen
from views.scr_cart import CartScreen
from views.scr_dashboard import DashboardScreen
from views.scr_login import LoginScreen
from views.scr_manage_products import ManageProductsScreen
from views.scr_notifications import NotificationsScreen
from views.scr_orders import OrdersScreen
from views.scr_shop import ShopScreen

_logger = get_logger(__name__)


class StoreApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "shop": ShopScreen,
        "cart": CartScreen,
        "orders": OrdersScreen,
        "bookings": BookingsScreen,
        "notifications": NotificationsScreen,
        "dashboard": DashboardScreen,
        "products": ManageProductsScreen,
    }

    MODE_TITLES = {
        "shop": "Shop",
        "cart": "Cart",
        "orders": "Orders",
        "bookings": "Bookings",
        "notifications": "Notifications",
        "dashboard": "Dashboard",
        "products": "Manage Products",
    }

    GUEST_MODES = ["shop", "notifications", "dashboard"]
    CUSTOMER_MODES = ["dashboard", "shop", "cart", "orders", "bookings", "notifications"]
    ADMIN_MODES = ["products", *CUSTOMER_MODES]

    CSS_PATH = STYLESHEET

    state: AppState

    def __init__(self):
        super().__init__()
        self.state = AppState()

    def menu_for(self, user: Optional[User]) -> Dict[str, str]:
        """Sidebar entries (mode -> title) for the given session user."""
        if user is None:
            modes = self.GUEST_MODES
        elif user.is_admin:
            modes = self.ADMIN_MODES
        else:
            modes = self.CUSTOMER_MODES
        return {m: self.MODE_TITLES[m] for m in modes}

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        await self.state.load()
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(ModeSwitchedMessage)
    def handle_mode_switched(self, message: ModeSwitchedMessage) -> None:
        self.state.view = message.new_mode

    @on(UserLoginMessage)
    def handle_user_login(self) -> None:
        self.notify(f"Hello {self.state.user.name}!")

    @on(NewOrderMessage)
    def handle_new_order(self) -> None:
        _logger.debug(f"{len(self.state.orders)} orders in store.")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        if self.state.user:
            db.crud.logout(self.state)
            self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    @work
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())
        # login sets the landing view; guests land in the shop
        target = self.state.view if self.state.view in self.MODES else "shop"
        self.post_message(ModeSwitchedMessage(self.current_mode, target))
        await self.switch_mode(target)


def run() -> None:
    StoreApp().run()


if __name__ == "__main__":
    run()
