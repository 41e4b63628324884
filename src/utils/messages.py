from textual.message import Message


class QuitRequestedMessage(Message):
    """
    posted when the user confirms quitting
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Posted after login or registration, so the sidebar and screens redraw for the new user
    """

    bubble = True


class UserLogoutMessage(Message):
    bubble = True


class CartChangedMessage(Message):
    """
    Posted whenever the session cart changes (add, edit, remove, checkout).
    Post it on the App so screens in other modes see it too.
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Posted after checkout or an order status change.
    Orders and dashboard screens reload on it, so do product views since stock changed
    """

    bubble = True


class BoardChangedMessage(Message):
    """
    Posted when notifications or bookings change
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called, from the app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
