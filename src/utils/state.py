from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from db import models
from db import repositories as repo


@dataclass
class AppState:
    """
    The single application-state structure, owned by the App.

    Fields:
      - user: logged-in user, or None for an anonymous session
      - view: name of the active screen/mode
      - products, orders, notifications, bookings: in-memory copies of the stored collections
      - cart: the logged-in user's cart (always empty when anonymous)

    Domain operations in db.crud write the store first and then assign the new
    list here; nothing else mutates these fields.
    """

    user: Optional[models.User] = None
    view: str = "shop"

    products: List[models.Product] = field(default_factory=list)
    cart: List[models.CartItem] = field(default_factory=list)
    orders: List[models.Order] = field(default_factory=list)
    notifications: List[models.Notification] = field(default_factory=list)
    bookings: List[models.Booking] = field(default_factory=list)

    @property
    def username(self) -> Optional[str]:
        return self.user.username if self.user else None

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.is_admin)

    async def load(self) -> None:
        """Read every shared collection from the store, seeding sample data on first run."""
        self.products = await repo.load_products()
        # users are not cached; seeding them here keeps first login working
        await repo.load_users()
        self.orders = await repo.load_orders()
        self.notifications = await repo.load_notifications()
        self.bookings = await repo.load_bookings()
        self.cart = await repo.load_cart(self.user.username) if self.user else []
