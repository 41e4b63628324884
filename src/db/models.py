# provide dataclass models and their (de)serialization to the stored JSON layout
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Tuple


class Role(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"


class OrderStatus(str, Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class BookingStatus(str, Enum):
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


def _field(data: Mapping[str, Any], key: str, kind):
    """Fetch data[key] and check its type; bools never pass as numbers."""
    if not isinstance(data, Mapping):
        raise ValueError(f"Expected an object, got {type(data).__name__}.")
    if key not in data:
        raise ValueError(f"Missing field '{key}'.")
    val = data[key]
    if isinstance(val, bool) and kind is not bool:
        raise ValueError(f"Field '{key}' has wrong type.")
    if not isinstance(val, kind):
        raise ValueError(f"Field '{key}' has wrong type.")
    return val


def _number(data: Mapping[str, Any], key: str) -> float:
    val = _field(data, key, (int, float))
    if val < 0:
        raise ValueError(f"Field '{key}' must not be negative.")
    return float(val)


def _count(data: Mapping[str, Any], key: str, minimum: int = 0) -> int:
    val = _field(data, key, int)
    if val < minimum:
        raise ValueError(f"Field '{key}' must be at least {minimum}.")
    return val


def _enum(data: Mapping[str, Any], key: str, enum_cls):
    raw = _field(data, key, str)
    try:
        return enum_cls(raw)
    except ValueError:
        raise ValueError(f"Field '{key}' has unknown value '{raw}'.") from None


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    description: str
    price: float
    stock: int
    image: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "stock": self.stock,
            "image": self.image,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Product:
        prod = cls(
            id=_field(data, "id", int),
            name=_field(data, "name", str),
            description=_field(data, "description", str),
            price=_number(data, "price"),
            stock=_count(data, "stock"),
        )
        # image is optional in older records
        if "image" in data:
            prod = replace(prod, image=_field(data, "image", str))
        return prod


@dataclass(frozen=True)
class User:
    username: str
    role: Role
    name: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {"username": self.username, "role": self.role.value, "name": self.name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        return cls(
            username=_field(data, "username", str),
            role=_enum(data, "role", Role),
            name=_field(data, "name", str),
        )


@dataclass(frozen=True)
class CartItem:
    """Product fields copied when the item was added, plus the quantity."""

    id: int
    name: str
    description: str
    price: float
    stock: int
    image: str
    qty: int

    @classmethod
    def from_product(cls, product: Product, qty: int) -> CartItem:
        return cls(qty=qty, **product.to_dict())

    def with_qty(self, qty: int) -> CartItem:
        return replace(self, qty=qty)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "stock": self.stock,
            "image": self.image,
            "qty": self.qty,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CartItem:
        prod = Product.from_dict(data)
        return cls.from_product(prod, _count(data, "qty", minimum=1))


@dataclass(frozen=True)
class OrderItem:
    id: int
    name: str
    price: float
    qty: int

    @property
    def line_total(self) -> float:
        return self.price * self.qty

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "price": self.price, "qty": self.qty}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OrderItem:
        return cls(
            id=_field(data, "id", int),
            name=_field(data, "name", str),
            price=_number(data, "price"),
            qty=_count(data, "qty", minimum=1),
        )


@dataclass(frozen=True)
class Order:
    id: int
    customer: str
    customer_name: str
    items: Tuple[OrderItem, ...]
    total: float
    status: OrderStatus
    created_at: str  # ISO timestamp
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer": self.customer,
            "customerName": self.customer_name,
            "items": [it.to_dict() for it in self.items],
            "total": self.total,
            "status": self.status.value,
            "createdAt": self.created_at,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Order:
        details = data.get("details", {}) if isinstance(data, Mapping) else {}
        if not isinstance(details, Mapping):
            raise ValueError("Field 'details' has wrong type.")
        return cls(
            id=_field(data, "id", int),
            customer=_field(data, "customer", str),
            customer_name=_field(data, "customerName", str),
            items=tuple(OrderItem.from_dict(it) for it in _field(data, "items", list)),
            total=_number(data, "total"),
            status=_enum(data, "status", OrderStatus),
            created_at=_field(data, "createdAt", str),
            details=dict(details),
        )


@dataclass(frozen=True)
class Notification:
    id: int
    title: str
    message: str
    posted_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "postedAt": self.posted_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Notification:
        return cls(
            id=_field(data, "id", int),
            title=_field(data, "title", str),
            message=_field(data, "message", str),
            posted_at=_field(data, "postedAt", str),
        )


@dataclass(frozen=True)
class Booking:
    id: int
    service: str
    date: str
    customer: str
    customer_name: str
    status: BookingStatus
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "service": self.service,
            "date": self.date,
            "customer": self.customer,
            "customerName": self.customer_name,
            "status": self.status.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Booking:
        return cls(
            id=_field(data, "id", int),
            service=_field(data, "service", str),
            date=_field(data, "date", str),
            customer=_field(data, "customer", str),
            customer_name=_field(data, "customerName", str),
            status=_enum(data, "status", BookingStatus),
            created_at=_field(data, "createdAt", str),
        )
