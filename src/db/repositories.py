# load/replace functions, one pair per persisted collection
from __future__ import annotations

from typing import Callable, List, Optional, Sequence, TypeVar

from db import models, storage
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")

PRODUCTS_KEY = "demo_products"
USERS_KEY = "demo_users"
ORDERS_KEY = "demo_orders"
NOTIFICATIONS_KEY = "demo_notifications"
BOOKINGS_KEY = "demo_bookings"
CART_KEY_PREFIX = "demo_cart_"

SAMPLE_PRODUCTS: List[models.Product] = [
    models.Product(
        id=1,
        name="Smartphone",
        description="Modern smartphone",
        price=250.0,
        stock=10,
        image="https://via.placeholder.com/300?text=Smartphone",
    ),
    models.Product(
        id=2,
        name="Headphones",
        description="Noise-cancelling headphones",
        price=50.0,
        stock=20,
        image="https://via.placeholder.com/300?text=Headphones",
    ),
    models.Product(
        id=3,
        name="Laptop",
        description="Lightweight laptop",
        price=800.0,
        stock=5,
        image="https://via.placeholder.com/300?text=Laptop",
    ),
]

SAMPLE_USERS: List[models.User] = [
    models.User(username="admin", role=models.Role.ADMIN, name="Admin User"),
    models.User(username="alice", role=models.Role.CUSTOMER, name="Alice Customer"),
]


def cart_key(username: str) -> str:
    return CART_KEY_PREFIX + username


async def _load(
    key: str, parse: Callable[[dict], T], seed: Optional[Sequence[T]] = None
) -> List[T]:
    """
    Read a list of records stored under `key`.

    Absent, undecodable, or mis-shaped data all count as corrupt: one bad record
    rejects the whole list. Corrupt data yields `seed` (written back) if one is
    given, otherwise an empty list.
    """
    raw = await storage.get_value(key, None)
    records: Optional[List[T]] = None
    if isinstance(raw, list):
        try:
            records = [parse(item) for item in raw]
        except ValueError as e:
            _logger.warning(f"Discarding corrupt collection '{key}': {e}")
    elif raw is not None:
        _logger.warning(f"Discarding collection '{key}': not a list.")

    if records is not None:
        return records
    if seed is None:
        return []
    _logger.info(f"Seeding '{key}' with {len(seed)} sample records.")
    await _replace(key, seed)
    return list(seed)


async def _replace(key: str, records: Sequence) -> None:
    await storage.set_value(key, [r.to_dict() for r in records])


# ---------------------------
# Products
# ---------------------------


async def load_products() -> List[models.Product]:
    return await _load(PRODUCTS_KEY, models.Product.from_dict, SAMPLE_PRODUCTS)


async def replace_products(products: Sequence[models.Product]) -> None:
    await _replace(PRODUCTS_KEY, products)


async def reset_products() -> List[models.Product]:
    """Overwrite the catalog with the sample products and return them."""
    await _replace(PRODUCTS_KEY, SAMPLE_PRODUCTS)
    return list(SAMPLE_PRODUCTS)


# ---------------------------
# Users
# ---------------------------


async def load_users() -> List[models.User]:
    return await _load(USERS_KEY, models.User.from_dict, SAMPLE_USERS)


async def replace_users(users: Sequence[models.User]) -> None:
    await _replace(USERS_KEY, users)


# ---------------------------
# Carts (one key per username)
# ---------------------------


async def load_cart(username: str) -> List[models.CartItem]:
    return await _load(cart_key(username), models.CartItem.from_dict)


async def replace_cart(username: str, items: Sequence[models.CartItem]) -> None:
    await _replace(cart_key(username), items)


# ---------------------------
# Orders, notifications, bookings (newest first)
# ---------------------------


async def load_orders() -> List[models.Order]:
    return await _load(ORDERS_KEY, models.Order.from_dict)


async def replace_orders(orders: Sequence[models.Order]) -> None:
    await _replace(ORDERS_KEY, orders)


async def load_notifications() -> List[models.Notification]:
    return await _load(NOTIFICATIONS_KEY, models.Notification.from_dict)


async def replace_notifications(notifications: Sequence[models.Notification]) -> None:
    await _replace(NOTIFICATIONS_KEY, notifications)


async def load_bookings() -> List[models.Booking]:
    return await _load(BOOKINGS_KEY, models.Booking.from_dict)


async def replace_bookings(bookings: Sequence[models.Booking]) -> None:
    await _replace(BOOKINGS_KEY, bookings)
