"""Per-client application state: signed-in user and shopping cart.

Each client creates one :class:`AppState` and passes it to the code that
needs it (Streamlit keeps it in ``st.session_state``). ``reset`` on logout
drops everything the previous user had.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class CartItem:
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int = 1
    notes: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class Cart:
    restaurant_id: int | None = None
    restaurant_name: str | None = None
    items: list[CartItem] = field(default_factory=list)

    def add(self, restaurant_id: int, restaurant_name: str, item: CartItem) -> None:
        """Add ``item``; a product from another restaurant starts a new cart."""
        if item.quantity < 1:
            raise ValueError("Quantity must be >= 1")
        if self.restaurant_id is not None and self.restaurant_id != restaurant_id:
            self.clear()
        self.restaurant_id = restaurant_id
        self.restaurant_name = restaurant_name
        for existing in self.items:
            if existing.product_id == item.product_id and existing.notes == item.notes:
                existing.quantity += item.quantity
                return
        self.items.append(item)

    def update_quantity(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            self.remove(product_id)
            return
        for existing in self.items:
            if existing.product_id == product_id:
                existing.quantity = quantity

    def remove(self, product_id: int) -> None:
        self.items = [item for item in self.items if item.product_id != product_id]
        if not self.items:
            self.clear()

    def clear(self) -> None:
        self.restaurant_id = None
        self.restaurant_name = None
        self.items = []

    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0.00"))

    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def is_empty(self) -> bool:
        return not self.items


@dataclass
class SessionUser:
    user_id: int
    email: str
    role: str
    full_name: str = ""
    access_token: str | None = None


@dataclass
class AppState:
    user: SessionUser | None = None
    cart: Cart = field(default_factory=Cart)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def init(self, user: SessionUser) -> None:
        """Start a session for ``user``; a different user never inherits the cart."""
        if self.user is not None and self.user.user_id != user.user_id:
            self.reset()
        self.user = user

    def reset(self) -> None:
        self.user = None
        self.cart = Cart()
