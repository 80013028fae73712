"""
Analytics Aggregation

Read-side reports for the admin dashboard. The reductions
(``restaurant_report``, ``admin_report``) are plain functions over
already-fetched orders so they can be tested without a database; the
async functions below them only fetch and hand over.

Orders are duck-typed: anything with ``user_id``, ``restaurant_id``,
``total_price``, ``created_at`` and ``items`` (each with
``menu_item_id``, ``dish_name``, ``unit_price`` and ``quantity``).

All day and month boundaries are UTC.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from cafechain.models import Order, Restaurant, utcnow
from cafechain.services.orders import day_bounds
from cafechain.services.restaurants import get_restaurant

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7
TOP_ITEMS = 5
TOP_RESTAURANTS = 5
MONTHS_SHOWN = 6


# =============================================================================
# PURE REDUCTIONS
# =============================================================================

def order_revenue(order: Any) -> int:
    """Revenue of an order from its line snapshots."""
    return sum(item.quantity * item.unit_price for item in order.items)


def average(total: int, count: int) -> float:
    return total / count if count else 0


def growth_rate(current: int, previous: int) -> float:
    """Percent change vs the previous window, 0 when there was no revenue."""
    if previous <= 0:
        return 0
    return round((current - previous) / previous * 100, 2)


def daily_sales(orders: Iterable[Any]) -> list[dict]:
    days: dict[str, dict] = {}
    for order in orders:
        key = order.created_at.date().isoformat()
        day = days.setdefault(key, {"date": key, "revenue": 0, "orders": 0, "customers": set()})
        day["revenue"] += order_revenue(order)
        day["orders"] += 1
        day["customers"].add(order.user_id)

    return [
        {**day, "customers": len(day["customers"])}
        for _, day in sorted(days.items())
    ]


def top_selling_items(orders: Iterable[Any], limit: int = TOP_ITEMS) -> list[dict]:
    """Items ranked by quantity sold. Lines of deleted items group by name."""
    sales: dict[tuple, dict] = {}
    for order in orders:
        for item in order.items:
            key = (item.menu_item_id, item.dish_name)
            entry = sales.setdefault(
                key,
                {"id": item.menu_item_id, "name": item.dish_name, "quantity": 0, "revenue": 0},
            )
            entry["quantity"] += item.quantity
            entry["revenue"] += item.quantity * item.unit_price

    return sorted(sales.values(), key=lambda e: e["quantity"], reverse=True)[:limit]


def customer_split(
    customer_ids: Iterable[int],
    first_order_at: dict[int, datetime],
    window_start: datetime,
) -> dict[str, int]:
    """
    New vs returning customers of a window.

    A customer is new when their first ever order at the restaurant
    falls inside the window.
    """
    new = returning = 0
    for user_id in set(customer_ids):
        first = first_order_at.get(user_id)
        if first is None or first >= window_start:
            new += 1
        else:
            returning += 1
    return {"newCustomers": new, "returningCustomers": returning}


def restaurant_report(
    orders: list[Any],
    previous_orders: list[Any],
    first_order_at: dict[int, datetime],
    window_start: datetime,
) -> dict:
    """Overview, daily sales, top items and customer mix of one restaurant."""
    total_revenue = sum(order_revenue(o) for o in orders)
    previous_revenue = sum(order_revenue(o) for o in previous_orders)
    customers = {o.user_id for o in orders}

    return {
        "overview": {
            "totalRevenue": total_revenue,
            "totalOrders": len(orders),
            "totalCustomers": len(customers),
            "averageOrderValue": average(total_revenue, len(orders)),
            "growthRate": growth_rate(total_revenue, previous_revenue),
        },
        "dailySales": daily_sales(orders),
        "topSellingItems": top_selling_items(orders),
        "customerMetrics": customer_split(customers, first_order_at, window_start),
    }


def monthly_revenue(orders: Iterable[Any], months: int = MONTHS_SHOWN) -> list[dict]:
    """Revenue per calendar month, oldest first, keeping the last ``months``."""
    buckets: dict[tuple[int, int], dict] = {}
    for order in orders:
        key = (order.created_at.year, order.created_at.month)
        bucket = buckets.setdefault(
            key,
            {"month": order.created_at.strftime("%b"), "revenue": 0, "orders": 0},
        )
        bucket["revenue"] += order.total_price
        bucket["orders"] += 1

    return [buckets[key] for key in sorted(buckets)][-months:]


def admin_report(orders: list[Any], restaurant_names: dict[int, str]) -> dict:
    """Chain-wide totals, top restaurants and revenue series."""
    total_revenue = sum(o.total_price for o in orders)

    daily: dict[str, dict] = {}
    by_restaurant: dict[int, dict] = {}
    for order in orders:
        key = order.created_at.date().isoformat()
        day = daily.setdefault(key, {"date": key, "revenue": 0, "orders": 0})
        day["revenue"] += order.total_price
        day["orders"] += 1

        resto = by_restaurant.setdefault(
            order.restaurant_id,
            {
                "id": order.restaurant_id,
                "name": restaurant_names.get(order.restaurant_id, ""),
                "revenue": 0,
                "orders": 0,
            },
        )
        resto["revenue"] += order.total_price
        resto["orders"] += 1

    top = sorted(by_restaurant.values(), key=lambda r: r["revenue"], reverse=True)

    return {
        "totalRevenue": total_revenue,
        "totalOrders": len(orders),
        "averageOrderValue": average(total_revenue, len(orders)),
        "topRestaurants": top[:TOP_RESTAURANTS],
        "dailyRevenue": [daily[k] for k in sorted(daily)],
        "monthlyRevenue": monthly_revenue(orders),
    }


# =============================================================================
# DATABASE FETCHERS
# =============================================================================

async def _orders_between(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    restaurant_id: Optional[int] = None,
) -> list[Order]:
    query = (
        select(Order)
        .options(selectinload(Order.items))
        .where(Order.created_at >= start, Order.created_at < end)
    )
    if restaurant_id is not None:
        query = query.where(Order.restaurant_id == restaurant_id)

    result = await db.execute(query.order_by(Order.created_at))
    return list(result.scalars().all())


async def restaurant_analytics(
    db: AsyncSession,
    restaurant_id: int,
    days: int = DEFAULT_WINDOW_DAYS,
) -> dict:
    await get_restaurant(db, restaurant_id)

    now = utcnow()
    window = timedelta(days=days)
    window_start = now - window

    orders = await _orders_between(db, window_start, now, restaurant_id)
    previous = await _orders_between(db, window_start - window, window_start, restaurant_id)

    customer_ids = {o.user_id for o in orders}
    first_order_at: dict[int, datetime] = {}
    if customer_ids:
        result = await db.execute(
            select(Order.user_id, func.min(Order.created_at))
            .where(Order.restaurant_id == restaurant_id, Order.user_id.in_(customer_ids))
            .group_by(Order.user_id)
        )
        first_order_at = {row[0]: row[1] for row in result.all()}

    report = restaurant_report(orders, previous, first_order_at, window_start)
    logger.debug(f"Analytics for restaurant #{restaurant_id}: {len(orders)} orders in {days} days")
    return report


async def admin_analytics(db: AsyncSession, days: int = DEFAULT_WINDOW_DAYS) -> dict:
    now = utcnow()
    orders = await _orders_between(db, now - timedelta(days=days), now)

    result = await db.execute(select(Restaurant.id, Restaurant.name))
    names = {row[0]: row[1] for row in result.all()}

    return admin_report(orders, names)


def month_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime(day.year, day.month, 1)
    if day.month == 12:
        return start, datetime(day.year + 1, 1, 1)
    return start, datetime(day.year, day.month + 1, 1)


async def _totals(
    session_maker: async_sessionmaker,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> dict[str, int]:
    async with session_maker() as db:
        query = select(func.count(Order.id), func.coalesce(func.sum(Order.total_price), 0))
        if start is not None:
            query = query.where(Order.created_at >= start, Order.created_at < end)
        count, revenue = (await db.execute(query)).one()
    return {"totalOrders": int(count), "totalRevenue": int(revenue)}


async def _restaurants(session_maker: async_sessionmaker) -> list[Restaurant]:
    async with session_maker() as db:
        result = await db.execute(select(Restaurant).order_by(Restaurant.name))
        return list(result.scalars().all())


async def _totals_by_restaurant(session_maker: async_sessionmaker) -> dict[int, tuple[int, int]]:
    async with session_maker() as db:
        result = await db.execute(
            select(
                Order.restaurant_id,
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_price), 0),
            ).group_by(Order.restaurant_id)
        )
        return {row[0]: (int(row[1]), int(row[2])) for row in result.all()}


async def dashboard_stats(session_maker: async_sessionmaker) -> dict:
    """
    Per-restaurant cumulative totals plus this month's and today's totals.

    The four queries are independent and run concurrently, each on its
    own session.
    """
    today = utcnow().date()
    month_start, month_end = month_bounds(today)
    day_start, day_end = day_bounds(today)

    restaurants, totals, monthly, daily = await asyncio.gather(
        _restaurants(session_maker),
        _totals_by_restaurant(session_maker),
        _totals(session_maker, month_start, month_end),
        _totals(session_maker, day_start, day_end),
    )

    return {
        "restaurants": [
            {
                "id": r.id,
                "name": r.name,
                "location": r.location,
                "number": r.contact_number,
                "totalOrders": totals.get(r.id, (0, 0))[0],
                "totalRevenue": totals.get(r.id, (0, 0))[1],
            }
            for r in restaurants
        ],
        "monthly": monthly,
        "today": daily,
    }
