# src/db/crud.py
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from db import models
from db import repositories as repo
from db.errors import NotAuthorized, NotFound, ValidationRejected
from db.models import BookingStatus, OrderStatus
from utils.logger import get_logger
from utils.pure import cart_total, summarize_sales
from utils.state import AppState

_logger = get_logger(__name__)

# admin may take any edge; a non-admin owner may only cancel a pending order
ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.REQUESTED: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def next_id(existing: Iterable[int], now: Optional[datetime] = None) -> int:
    """
    Timestamp-like id (epoch milliseconds) that is strictly greater than every
    existing id, so two records created within the same millisecond never collide.
    """
    stamp = int((now or datetime.now(timezone.utc)).timestamp() * 1000)
    return max([stamp, *(i + 1 for i in existing)])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def _require_user(state: AppState, message: str) -> models.User:
    if state.user is None:
        raise NotAuthorized(message)
    return state.user


def _require_admin(state: AppState) -> models.User:
    user = _require_user(state, "Please login first.")
    if not user.is_admin:
        raise NotAuthorized("Only an admin can do that.")
    return user


def _require_text(**fields: str) -> Dict[str, str]:
    """Strip every field; reject if any ends up empty."""
    cleaned = {k: (v or "").strip() for k, v in fields.items()}
    missing = [k for k, v in cleaned.items() if not v]
    if missing:
        raise ValidationRejected(f"Please fill in: {', '.join(missing)}.")
    return cleaned


# ---------------------------
# Session: login / register / logout
# ---------------------------


async def login(state: AppState, username: str) -> models.User:
    """Look up `username` and make it the session user. No password involved."""
    username = (username or "").strip()
    users = await repo.load_users()
    found = next((u for u in users if u.username == username), None)
    if found is None:
        raise NotFound("User not found. Try 'admin' or 'alice'.")

    state.user = found
    state.cart = await repo.load_cart(found.username)
    state.view = "products" if found.is_admin else "shop"
    _logger.info(f"Logged in as {found.username} ({found.role.value}).")
    return found


async def register(state: AppState, username: str, name: str) -> models.User:
    """Create a customer and log them in. Duplicate usernames are rejected."""
    fields = _require_text(username=username, name=name)
    users = await repo.load_users()
    if any(u.username == fields["username"] for u in users):
        raise ValidationRejected("Username exists. Choose another.")

    new_user = models.User(
        username=fields["username"], role=models.Role.CUSTOMER, name=fields["name"]
    )
    await repo.replace_users([*users, new_user])
    _logger.info(f"Registered customer {new_user.username}.")
    return await login(state, new_user.username)


def logout(state: AppState) -> None:
    """Drop the session. The user's stored cart stays where it is."""
    state.user = None
    state.cart = []
    state.view = "shop"


# ---------------------------
# Products (admin)
# ---------------------------


def get_product(state: AppState, product_id: int) -> models.Product:
    for p in state.products:
        if p.id == product_id:
            return p
    raise NotFound(f"Product {product_id} not found.")


def _check_price_stock(price: Any, stock: Any) -> None:
    if isinstance(price, bool) or not isinstance(price, (int, float)) or price < 0:
        raise ValidationRejected("Price must be a number of at least 0.")
    if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
        raise ValidationRejected("Stock must be a whole number of at least 0.")


def _check_qty(qty: Any) -> None:
    if isinstance(qty, bool) or not isinstance(qty, int):
        raise ValidationRejected("Quantity must be a whole number.")


async def add_product(
    state: AppState,
    name: str,
    description: str = "",
    price: float = 0.0,
    stock: int = 1,
    image: str = "",
) -> models.Product:
    _require_admin(state)
    if not (name or "").strip():
        raise ValidationRejected("Provide name")
    _check_price_stock(price, stock)

    product = models.Product(
        id=next_id(p.id for p in state.products),
        name=name.strip(),
        description=(description or "").strip(),
        price=float(price),
        stock=stock,
        image=(image or "").strip(),
    )
    products = [*state.products, product]
    await repo.replace_products(products)
    state.products = products
    return product


async def update_product(state: AppState, product_id: int, **patch) -> models.Product:
    """Apply `patch` (any of name, description, price, stock, image) to one product."""
    _require_admin(state)
    current = get_product(state, product_id)

    allowed = {"name", "description", "price", "stock", "image"}
    unknown = set(patch) - allowed
    if unknown:
        raise ValidationRejected(f"Cannot update: {', '.join(sorted(unknown))}.")
    if "name" in patch and not (patch["name"] or "").strip():
        raise ValidationRejected("Provide name")
    _check_price_stock(
        patch.get("price", current.price), patch.get("stock", current.stock)
    )
    if "price" in patch:
        patch["price"] = float(patch["price"])
    for key in ("name", "description", "image"):
        if key in patch:
            patch[key] = (patch[key] or "").strip()

    updated = replace(current, **patch)
    products = [updated if p.id == product_id else p for p in state.products]
    await repo.replace_products(products)
    state.products = products
    return updated


async def delete_product(state: AppState, product_id: int) -> None:
    _require_admin(state)
    get_product(state, product_id)
    products = [p for p in state.products if p.id != product_id]
    await repo.replace_products(products)
    state.products = products


async def reset_products(state: AppState) -> List[models.Product]:
    """Put the sample catalog back."""
    _require_admin(state)
    state.products = await repo.reset_products()
    _logger.info("Products reset to sample.")
    return state.products


# ---------------------------
# Cart Management
# ---------------------------


async def _save_cart(state: AppState, items: List[models.CartItem]) -> None:
    await repo.replace_cart(state.user.username, items)
    state.cart = items


async def add_to_cart(
    state: AppState, product_id: int, qty: int = 1
) -> List[models.CartItem]:
    """
    Add `qty` of a product to the session user's cart.
    Merges into an existing line for the same product; otherwise appends a
    snapshot of the live product. Rejected if live stock is below `qty`.
    """
    _require_user(state, "Please login as a customer to add to cart.")
    _check_qty(qty)
    if qty < 1:
        raise ValidationRejected("Quantity must be at least 1.")
    product = get_product(state, product_id)
    if product.stock < qty:
        raise ValidationRejected("Not enough stock.")

    if any(c.id == product_id for c in state.cart):
        items = [c.with_qty(c.qty + qty) if c.id == product_id else c for c in state.cart]
    else:
        items = [*state.cart, models.CartItem.from_product(product, qty)]
    await _save_cart(state, items)
    return items


async def update_cart_qty(
    state: AppState, product_id: int, qty: int
) -> List[models.CartItem]:
    """Set a line's quantity; 0 or less removes the line. Stock is checked at checkout."""
    _require_user(state, "Please login first.")
    _check_qty(qty)
    if qty <= 0:
        items = [c for c in state.cart if c.id != product_id]
    else:
        items = [c.with_qty(qty) if c.id == product_id else c for c in state.cart]
    await _save_cart(state, items)
    return items


async def remove_from_cart(state: AppState, product_id: int) -> List[models.CartItem]:
    return await update_cart_qty(state, product_id, 0)


async def clear_cart(state: AppState) -> None:
    _require_user(state, "Please login first.")
    await _save_cart(state, [])


# ---------------------------
# Checkout & Orders
# ---------------------------


async def checkout(
    state: AppState, details: Optional[Mapping[str, Any]] = None
) -> models.Order:
    """
    Turn the session user's cart into a pending order.

    Every line is re-checked against live stock first; any shortfall rejects the
    whole checkout before anything is written. On success stock is decremented,
    the order is prepended to the order list and the cart is emptied.

    Products are written before orders and the two writes are not atomic: a
    crash in between leaves stock decremented with no order recorded.
    """
    user = _require_user(state, "Please login to checkout.")
    cart = list(state.cart)
    if not cart:
        raise ValidationRejected("Cart is empty.")

    live = {p.id: p for p in state.products}
    for item in cart:
        prod = live.get(item.id)
        if prod is None or prod.stock < item.qty:
            raise ValidationRejected(f"Not enough stock for {item.name}")

    wanted = {item.id: item.qty for item in cart}
    products = [
        replace(p, stock=p.stock - wanted[p.id]) if p.id in wanted else p
        for p in state.products
    ]

    order = models.Order(
        id=next_id(o.id for o in state.orders),
        customer=user.username,
        customer_name=user.name,
        items=tuple(
            models.OrderItem(id=c.id, name=c.name, price=c.price, qty=c.qty)
            for c in cart
        ),
        total=cart_total(cart),
        status=OrderStatus.PENDING,
        created_at=_timestamp(),
        details=dict(details or {}),
    )
    orders = [order, *state.orders]

    await repo.replace_products(products)
    state.products = products
    await repo.replace_orders(orders)
    state.orders = orders
    await _save_cart(state, [])

    _logger.info(
        f"Order {order.id} placed by {user.username}: "
        f"{len(order.items)} lines, total {order.total:.2f}."
    )
    return order


def visible_orders(state: AppState) -> List[models.Order]:
    """Admin sees every order, a customer their own, an anonymous session none."""
    if state.user is None:
        return []
    if state.is_admin:
        return list(state.orders)
    return [o for o in state.orders if o.customer == state.user.username]


def allowed_order_statuses(state: AppState, order: models.Order) -> FrozenSet[OrderStatus]:
    """Statuses the session user may move `order` to right now."""
    if state.user is None:
        return frozenset()
    if state.is_admin:
        return ORDER_TRANSITIONS[order.status]
    if order.customer == state.user.username and order.status == OrderStatus.PENDING:
        return frozenset({OrderStatus.CANCELLED})
    return frozenset()


async def update_order_status(
    state: AppState, order_id: int, status: OrderStatus | str
) -> models.Order:
    user = _require_user(state, "Please login first.")
    try:
        status = OrderStatus(status)
    except ValueError:
        raise ValidationRejected(f"Unknown order status '{status}'.") from None

    order = next((o for o in state.orders if o.id == order_id), None)
    if order is None:
        raise NotFound(f"Order {order_id} not found.")

    if not user.is_admin and order.customer != user.username:
        raise NotAuthorized("You can only change your own orders.")
    if not user.is_admin and status != OrderStatus.CANCELLED:
        raise NotAuthorized("Only an admin can do that.")
    if status not in allowed_order_statuses(state, order):
        raise ValidationRejected(
            f"Cannot change order {order_id} from {order.status.value} to {status.value}."
        )

    updated = replace(order, status=status)
    orders = [updated if o.id == order_id else o for o in state.orders]
    await repo.replace_orders(orders)
    state.orders = orders
    return updated


# ---------------------------
# Notifications
# ---------------------------


async def post_notification(
    state: AppState, title: str, message: str
) -> models.Notification:
    _require_admin(state)
    fields = _require_text(title=title, message=message)
    notif = models.Notification(
        id=next_id(n.id for n in state.notifications),
        title=fields["title"],
        message=fields["message"],
        posted_at=_timestamp(),
    )
    notifications = [notif, *state.notifications]
    await repo.replace_notifications(notifications)
    state.notifications = notifications
    return notif


async def remove_notification(state: AppState, notification_id: int) -> None:
    _require_admin(state)
    if not any(n.id == notification_id for n in state.notifications):
        raise NotFound(f"Notification {notification_id} not found.")
    notifications = [n for n in state.notifications if n.id != notification_id]
    await repo.replace_notifications(notifications)
    state.notifications = notifications


# ---------------------------
# Bookings
# ---------------------------


async def create_booking(state: AppState, service: str, date: str) -> models.Booking:
    user = _require_user(state, "Login to create booking.")
    fields = _require_text(service=service, date=date)
    booking = models.Booking(
        id=next_id(b.id for b in state.bookings),
        service=fields["service"],
        date=fields["date"],
        customer=user.username,
        customer_name=user.name,
        status=BookingStatus.REQUESTED,
        created_at=_timestamp(),
    )
    bookings = [booking, *state.bookings]
    await repo.replace_bookings(bookings)
    state.bookings = bookings
    return booking


def visible_bookings(state: AppState) -> List[models.Booking]:
    if state.user is None:
        return []
    if state.is_admin:
        return list(state.bookings)
    return [b for b in state.bookings if b.customer == state.user.username]


async def update_booking_status(
    state: AppState, booking_id: int, status: BookingStatus | str
) -> models.Booking:
    _require_admin(state)
    try:
        status = BookingStatus(status)
    except ValueError:
        raise ValidationRejected(f"Unknown booking status '{status}'.") from None

    booking = next((b for b in state.bookings if b.id == booking_id), None)
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found.")
    if status not in BOOKING_TRANSITIONS[booking.status]:
        raise ValidationRejected(
            f"Cannot change booking from {booking.status.value} to {status.value}."
        )

    updated = replace(booking, status=status)
    bookings = [updated if b.id == booking_id else b for b in state.bookings]
    await repo.replace_bookings(bookings)
    state.bookings = bookings
    return updated


# ---------------------------
# Dashboard
# ---------------------------


def dashboard_summary(state: AppState, recent: int = 5) -> Dict[str, Any]:
    summary = summarize_sales(state.orders, state.products, recent)
    summary["cart_items"] = len(state.cart)
    return summary
