import asyncio
from pathlib import Path

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from db.errors import StoreError
from utils.messages import CartChangedMessage, ModeSwitchedMessage, UserLogoutMessage
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal

# shipped as package data next to the screens
STYLESHEET = Path(__file__).resolve().parent / "styles" / "app.tcss"


class Sidebar(Container):
    """User info, the role's menu and the log in/out button."""

    def __init__(self) -> None:
        super().__init__()
        # refreshes from mount and resume can overlap; ListView ids must stay unique
        self._refresh_lock = asyncio.Lock()

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        await self.refresh_info()

    async def refresh_info(self) -> None:
        async with self._refresh_lock:
            await self._refresh_info()

    async def _refresh_info(self) -> None:
        state = self.app.state
        if state.user:
            rows = [
                ["User", state.user.username],
                ["Name", state.user.name],
                ["Role", state.user.role.value.title()],
                ["Cart", f"{sum(c.qty for c in state.cart)} item(s)"],
            ]
            self.query_one("#btn-logout", Button).label = "Log out"
        else:
            rows = [["User", "Guest"], ["Role", "-"]]
            self.query_one("#btn-logout", Button).label = "Log in"
        await self.query_one(Markdown).update(
            generate_markdown_table(None, rows, ["l", "l"])
        )

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(v), id="list-menu-item-" + k)
                for k, v in self.app.menu_for(state.user).items()
            ]
        )
        self.highlight_item(self.app.current_mode)

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)
        else:
            self.highlight_item(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if self.app.state.user and not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        for item in self.query_one("#list-menu").children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        self.app.title = "Demo Store"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                self.sub_title = self.app.MODE_TITLES.get(k, header_sub_title)

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(ScreenResume)
    @on(CartChangedMessage)
    async def refresh_sidebar(self) -> None:
        if self._show_sidebar:
            await self.query_one(Sidebar).refresh_info()

    def report(self, err: StoreError) -> None:
        """Show a rejected operation to the user."""
        self.notify(str(err), severity="error")

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
