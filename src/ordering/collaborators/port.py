"""Ports for the storefront collaborators this service consumes.

Carts, the product catalog, the address book, discount codes and analytics
are owned by other parts of the storefront. The lifecycle service only talks
to them through these interfaces; ``collaborators.memory`` provides in-memory
adapters for development and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum


class Role(Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as supplied by the auth/session layer."""

    user_id: str
    role: str = Role.USER.value
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class Product:
    product_id: str
    name: str
    price: float
    is_active: bool = True


@dataclass(frozen=True)
class AddressRecord:
    address_id: str
    user_id: str
    line1: str
    city: str
    postal_code: str
    country: str
    name: str | None = None
    line2: str | None = None
    state: str | None = None
    phone: str | None = None

    def snapshot(self) -> dict:
        """Address fields to freeze onto an order."""
        data = asdict(self)
        data.pop("address_id")
        data.pop("user_id")
        return data


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


@dataclass(frozen=True)
class DiscountCode:
    code: str
    discount_type: str
    value: float
    is_active: bool = True
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    min_order_amount: float | None = None

    def is_valid_at(self, moment: datetime) -> bool:
        if not self.is_active:
            return False
        if self.valid_from is not None and moment < self.valid_from:
            return False
        if self.valid_until is not None and moment > self.valid_until:
            return False
        return True


class CartStore(ABC):
    @abstractmethod
    def get_cart(self, user_id: str) -> list[CartLine]: ...

    @abstractmethod
    def clear_cart(self, user_id: str) -> None: ...


class CatalogStore(ABC):
    @abstractmethod
    def get_product(self, product_id: str) -> Product | None: ...

    def get_current_price(self, product_id: str) -> float | None:
        product = self.get_product(product_id)
        return product.price if product else None


class AddressStore(ABC):
    @abstractmethod
    def get_address(self, address_id: str) -> AddressRecord | None: ...


class DiscountCodeStore(ABC):
    @abstractmethod
    def find(self, code: str) -> DiscountCode | None: ...


class AnalyticsRecorder(ABC):
    @abstractmethod
    def record(self, event_type: str, user_id: str | None, data: dict) -> None: ...
