"""
Order placement, status changes and order listings.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cafechain.core.exceptions import InvalidInput, NotFound
from cafechain.models import MenuItem, Order, OrderItem, OrderStatus, utcnow
from cafechain.services import menu_version, wallet
from cafechain.services.restaurants import get_restaurant

logger = logging.getLogger(__name__)

WALLET_PAYMENT = "wallet"


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open UTC range ``[day 00:00, next day 00:00)``."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def today() -> date:
    return utcnow().date()


async def _resolve_item(
    db: AsyncSession,
    restaurant_id: int,
    menu_id: Optional[int],
    dish_name: Optional[str],
) -> MenuItem:
    query = select(MenuItem).where(MenuItem.restaurant_id == restaurant_id)
    if menu_id is not None:
        query = query.where(MenuItem.id == menu_id)
    else:
        query = query.where(MenuItem.name == dish_name)

    result = await db.execute(query.limit(1))
    item = result.scalar_one_or_none()
    if not item:
        raise NotFound(f"Menu item not found: {menu_id if menu_id is not None else dish_name}")
    if not item.availability:
        raise InvalidInput(f"{item.name} is not available")
    return item


async def get_order(db: AsyncSession, order_id: int) -> Order:
    result = await db.execute(
        select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise NotFound("Order not found")
    return order


async def place_order(
    db: AsyncSession,
    user_id: int,
    restaurant_id: int,
    total_price: int,
    lines: list[tuple[Optional[int], Optional[str], int]],
    payment_method: Optional[str] = "cash",
    delivery_type: Optional[str] = None,
) -> Order:
    """
    Create an order with its lines in one transaction.

    ``lines`` holds ``(menu_id, dish_name, quantity)`` tuples; each is
    resolved against the restaurant's menu and snapshotted. Paying with
    the wallet debits it in the same transaction.

    Raises:
        NotFound: Unknown restaurant or menu item
        InvalidInput: Restaurant closed, item unavailable, ``total_price``
            not matching the line prices, or not enough wallet balance
    """
    restaurant = await get_restaurant(db, restaurant_id)
    if not restaurant.is_open:
        raise InvalidInput("Resto is closed")

    if not lines:
        raise InvalidInput("Order has no items")

    order = Order(
        user_id=user_id,
        restaurant_id=restaurant_id,
        total_price=total_price,
        status=OrderStatus.PENDING,
        payment_method=payment_method,
        delivery_type=delivery_type,
    )

    for menu_id, dish_name, quantity in lines:
        item = await _resolve_item(db, restaurant_id, menu_id, dish_name)
        order.items.append(
            OrderItem(
                menu_item_id=item.id,
                dish_name=item.name,
                unit_price=item.price,
                quantity=quantity,
            )
        )

    expected = sum(line.unit_price * line.quantity for line in order.items)
    if total_price != expected:
        raise InvalidInput(f"Total price {total_price} does not match items total {expected}")

    db.add(order)
    await db.flush()

    if (payment_method or "").lower() == WALLET_PAYMENT:
        try:
            await wallet.debit(db, user_id, total_price, WALLET_PAYMENT)
        except InvalidInput:
            logger.warning(f"Order by user #{user_id} rejected: insufficient wallet balance")
            raise

    await db.commit()

    logger.info(
        f"Order #{order.id} placed by user #{user_id} at restaurant #{restaurant_id}: "
        f"{len(order.items)} items, total {total_price} ({payment_method})"
    )
    return order


async def change_status(db: AsyncSession, order_id: int, status: OrderStatus) -> Order:
    """Set an order's status and bump its restaurant's menu version."""
    order = await get_order(db, order_id)
    old_status = order.status

    order.status = status
    order.updated_at = utcnow()
    await menu_version.bump(db, order.restaurant_id)
    await db.commit()

    logger.info(f"Order #{order_id}: {old_status.value} -> {status.value}")
    return order


# =============================================================================
# LISTINGS
# =============================================================================

async def user_orders(db: AsyncSession, user_id: int) -> list[Order]:
    result = await db.execute(
        select(Order)
        .options(selectinload(Order.items))
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return list(result.scalars().all())


async def orders_for_day(
    db: AsyncSession,
    restaurant_id: int,
    day: date,
    status: Optional[OrderStatus] = None,
) -> list[Order]:
    """Orders created at the restaurant on ``day`` (UTC), with items and customer."""
    await get_restaurant(db, restaurant_id)
    start, end = day_bounds(day)

    query = (
        select(Order)
        .options(selectinload(Order.items), selectinload(Order.user))
        .where(
            Order.restaurant_id == restaurant_id,
            Order.created_at >= start,
            Order.created_at < end,
        )
    )
    if status is not None:
        query = query.where(Order.status == status)

    result = await db.execute(query.order_by(Order.created_at.desc(), Order.id.desc()))
    return list(result.scalars().all())


async def daily_revenue(db: AsyncSession, restaurant_id: int, day: date) -> dict:
    """Revenue and order count of one restaurant for one day."""
    orders = await orders_for_day(db, restaurant_id, day)
    return {
        "date": day.isoformat(),
        "totalRevenue": sum(o.total_price for o in orders),
        "orderCount": len(orders),
        "orders": orders,
    }


async def delivered_stats(db: AsyncSession, day: date) -> dict[int, tuple[int, int]]:
    """``{restaurant_id: (order_count, revenue)}`` of delivered orders on ``day``."""
    start, end = day_bounds(day)
    result = await db.execute(
        select(
            Order.restaurant_id,
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_price), 0),
        )
        .where(
            Order.status == OrderStatus.DELIVERED,
            Order.created_at >= start,
            Order.created_at < end,
        )
        .group_by(Order.restaurant_id)
    )
    return {row[0]: (int(row[1]), int(row[2])) for row in result.all()}
