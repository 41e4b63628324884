from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

import db.crud
from db.errors import StoreError
from utils.messages import UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal


class LoginScreen(BaseScreen):
    """
    Log in by username, register a customer, or continue as guest.
    Dismisses once the session is decided.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Username")
                    yield Input(placeholder="alice", id="input-login-username")
                    yield Label("Demo users: admin (admin), alice (customer)")
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Continue as Guest", id="btn-guest")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Full name")
                    yield Input(placeholder="Jane Doe", id="input-reg-name")
                    yield Label("Username")
                    yield Input(placeholder="jane", id="input-reg-username")
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-username").focus()

    def on_key(self, event: Key) -> None:
        if event.key != "enter":
            return
        if self.focused == self.query_one("#input-login-username"):
            self.handle_login_submit()
        elif self.focused == self.query_one("#input-reg-username"):
            self.handle_registration_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        username_input = self.query_one("#input-login-username", Input)
        username = username_input.value.strip()
        if not username:
            self.notify("Username cannot be empty!", severity="error")
            return

        try:
            await db.crud.login(self.app.state, username)
        except StoreError as e:
            self.report(e)
            username_input.focus()
            username_input.add_class("-invalid")
            return

        self.app.post_message(UserLoginMessage())
        self.dismiss()

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        name = self.query_one("#input-reg-name", Input).value
        username = self.query_one("#input-reg-username", Input).value

        try:
            await db.crud.register(self.app.state, username, name)
        except StoreError as e:
            self.report(e)
            return

        self.notify("Registration successful.")
        self.app.post_message(UserLoginMessage())
        self.dismiss()

    @on(Button.Pressed, "#btn-guest")
    def handle_guest(self) -> None:
        db.crud.logout(self.app.state)
        self.dismiss()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
