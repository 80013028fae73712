"""
SQLAlchemy Database Models

Restaurants, menus, orders, customer accounts, wallet ledger and ads.

All timestamps are naive UTC.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from cafechain.database import Base


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Restaurant(Base):
    """
    A restaurant in the chain.

    ``menu_version`` is bumped whenever the menu, the open/closed flag or
    the status of one of its orders changes, so clients can poll a single
    integer instead of refetching the whole menu.
    """
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    location = Column(String(255), nullable=False)
    contact_number = Column(String(20), nullable=False, unique=True, index=True)
    is_open = Column(Boolean, nullable=False, default=True)
    menu_version = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Restaurant #{self.id} - {self.name} - v{self.menu_version}>"


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    price = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String(500), nullable=True)
    is_veg = Column(Boolean, nullable=False, default=False)
    category = Column(String(50), nullable=True)
    availability = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name} - {self.price}>"


class User(Base):
    """
    Customer account.

    ``otp_code`` / ``otp_issued_at`` / ``otp_attempts`` hold the pending
    email verification code; all three are cleared once it is consumed.
    ``balance`` always equals the sum of the account's wallet transactions.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=False)
    balance = Column(BigInteger, nullable=False, default=0)
    is_verified = Column(Boolean, nullable=False, default=False)

    otp_code = Column(String(6), nullable=True)
    otp_issued_at = Column(DateTime, nullable=True)
    otp_attempts = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<User #{self.id} - {self.email}>"


class WalletTransaction(Base):
    """Append-only wallet ledger entry. Debits are negative."""
    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    payment_mode = Column(String(50), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<WalletTransaction #{self.id} - user {self.user_id} - {self.amount:+d}>"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    total_price = Column(Integer, nullable=False)
    status = Column(
        Enum(OrderStatus, values_callable=lambda e: [s.value for s in e]),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )
    payment_method = Column(String(50), nullable=True)
    delivery_type = Column(String(50), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)

    user = relationship("User")
    restaurant = relationship("Restaurant")
    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Order #{self.id} - resto {self.restaurant_id} - {self.status.value}>"


class OrderItem(Base):
    """
    Line of an order.

    Name and unit price are copied from the menu item when the order is
    placed; ``menu_item_id`` becomes NULL if the menu item is deleted.
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=True, index=True)
    dish_name = Column(String(100), nullable=False)
    unit_price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")

    @property
    def line_total(self) -> int:
        return self.quantity * self.unit_price


class Ad(Base):
    """Discount promotion for one menu item."""
    __tablename__ = "ads"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False, index=True)
    discount = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
