"""
Admin routes.

Everything here needs an admin session except ``getMenuVersion``,
which menu-polling clients call without logging in.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cafechain.core.config import get_settings
from cafechain.core.exceptions import InvalidInput, PayloadTooLarge
from cafechain.database import async_session_maker, get_db
from cafechain.dependencies import require_admin
from cafechain.models import OrderStatus, User
from cafechain.schemas import (
    AdCreate,
    AdDelete,
    AdOut,
    DateQuery,
    MenuEdit,
    MenuItemOut,
    OrderDetailOut,
    OrderOut,
    OrderStatusChange,
    RestaurantCreate,
    RestaurantOut,
    RestaurantStatusChange,
    StatusChangeRequest,
    UserOut,
    WalletTopUp,
    WalletTransactionOut,
    envelope,
    parse_order_status,
)
from cafechain.services import accounts, analytics, menu_version, orders, restaurants, wallet
from cafechain.services.storage import BaseStorageService, get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])
public_router = APIRouter(prefix="/admin", tags=["Admin"])


# =============================================================================
# RESTAURANTS
# =============================================================================

@router.post("/createResto", summary="Create Restaurant")
async def create_resto(body: RestaurantCreate, db: AsyncSession = Depends(get_db)) -> dict:
    restaurant = await restaurants.create_restaurant(db, body.name, body.location, body.number)
    return envelope("Resto created successfully", resto=RestaurantOut.model_validate(restaurant).dump())


@router.get("/allResto", summary="List Restaurants With Today's Stats")
async def all_resto(db: AsyncSession = Depends(get_db)) -> dict:
    """Every restaurant plus today's delivered order count and revenue."""
    today = orders.today()
    stats = await orders.delivered_stats(db, today)

    resto = []
    for restaurant in await restaurants.list_restaurants(db):
        count, revenue = stats.get(restaurant.id, (0, 0))
        resto.append({
            **RestaurantOut.model_validate(restaurant).dump(),
            "dailyStats": {
                "orderCount": count,
                "totalRevenue": revenue,
                "date": today.isoformat(),
            },
        })

    return envelope("All resto fetched successfully", resto=resto)


@router.post("/resto/{resto_id}/changeStatus", summary="Open or Close Restaurant")
async def change_resto_status(
    resto_id: int,
    body: RestaurantStatusChange,
    db: AsyncSession = Depends(get_db),
) -> dict:
    restaurant = await restaurants.set_open(db, resto_id, body.status)
    return envelope("Resto status changed successfully", resto=RestaurantOut.model_validate(restaurant).dump())


# =============================================================================
# MENU
# =============================================================================

@router.get("/resto/{resto_id}/menu", summary="Full Menu")
async def resto_menu(resto_id: int, db: AsyncSession = Depends(get_db)) -> dict:
    """All items, unavailable ones included, with the current menu version."""
    restaurant = await restaurants.get_restaurant(db, resto_id)
    items = await restaurants.list_menu(db, resto_id)
    return envelope(
        "Menu fetched successfully",
        menu=[MenuItemOut.model_validate(i).dump() for i in items],
        menuVersion=restaurant.menu_version,
    )


@router.post("/resto/{resto_id}/addMenu", summary="Add Menu Item")
async def add_menu(
    resto_id: int,
    name: Optional[str] = Form(None),
    price: Optional[int] = Form(None),
    description: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: BaseStorageService = Depends(get_storage_service),
) -> dict:
    """Multipart upload of a menu item and its image."""
    settings = get_settings()

    if not name or price is None or not description:
        raise InvalidInput("Name, price, and description are required")
    if price <= 0:
        raise InvalidInput("Price must be positive")
    if image is None:
        raise InvalidInput("Image is required")
    if not (image.content_type or "").startswith("image/"):
        raise InvalidInput("Only image files are allowed")

    content = await image.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise PayloadTooLarge(f"Image must be at most {settings.max_upload_mb} MB")

    item = await restaurants.add_menu_item(
        db,
        storage,
        resto_id,
        name=name,
        price=price,
        description=description,
        food_type=type,
        category=category,
        image=content,
        image_filename=image.filename,
        image_content_type=image.content_type,
    )
    return envelope("Menu item added successfully", menu=MenuItemOut.model_validate(item).dump())


@router.post("/resto/{resto_id}/editMenu", summary="Edit Menu Item")
async def edit_menu(resto_id: int, body: MenuEdit, db: AsyncSession = Depends(get_db)) -> dict:
    item = await restaurants.edit_menu_item(
        db,
        resto_id,
        body.menu_id,
        name=body.name,
        price=body.price,
        description=body.description,
        category=body.category,
        food_type=body.type,
    )
    return envelope("Menu updated successfully", menu=MenuItemOut.model_validate(item).dump())


@router.delete("/resto/{resto_id}/menu/{menu_id}", summary="Delete Menu Item")
async def delete_menu(resto_id: int, menu_id: int, db: AsyncSession = Depends(get_db)) -> dict:
    item = await restaurants.delete_menu_item(db, resto_id, menu_id)
    return envelope("Menu item deleted successfully", menu=MenuItemOut.model_validate(item).dump())


@public_router.get("/resto/{resto_id}/getMenuVersion", summary="Menu Version")
async def get_menu_version(resto_id: int, db: AsyncSession = Depends(get_db)) -> dict:
    version = await menu_version.read(db, resto_id)
    return envelope("Menu version fetched successfully", menuVersion=version)


@router.post("/changestatus", summary="Change Menu Availability or Order Status")
async def change_status(body: StatusChangeRequest, db: AsyncSession = Depends(get_db)) -> dict:
    """``menuId`` toggles availability; ``orderId`` sets the order status."""
    if body.menu_id is not None:
        item = await restaurants.set_availability(db, body.resto_id, body.menu_id, body.status)
        return envelope("Menu availability changed successfully", menu=MenuItemOut.model_validate(item).dump())

    try:
        status = parse_order_status(body.status)
    except ValueError as e:
        raise InvalidInput(str(e))

    order = await orders.get_order(db, body.order_id)
    if order.restaurant_id != body.resto_id:
        raise InvalidInput("Order does not belong to this resto")

    order = await orders.change_status(db, body.order_id, status)
    return envelope("Status changed successfully", order=OrderOut.model_validate(order).dump())


@router.post("/order/changestatus", summary="Change Order Status")
async def change_order_status(body: OrderStatusChange, db: AsyncSession = Depends(get_db)) -> dict:
    order = await orders.change_status(db, body.order_id, body.status)
    return envelope("Order status changed successfully", order=OrderOut.model_validate(order).dump())


# =============================================================================
# ORDERS & REVENUE
# =============================================================================

@router.get("/resto/{resto_id}/dailyRevenue", summary="Revenue For a Day")
async def daily_revenue(
    resto_id: int,
    day: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Defaults to today (UTC)."""
    report = await orders.daily_revenue(db, resto_id, day or orders.today())
    report["orders"] = [OrderDetailOut.model_validate(o).dump() for o in report["orders"]]
    return envelope("Daily revenue fetched successfully", **report)


@router.post("/resto/{resto_id}/orderHistory", summary="Orders For a Day")
async def order_history(resto_id: int, body: DateQuery, db: AsyncSession = Depends(get_db)) -> dict:
    found = await orders.orders_for_day(db, resto_id, body.day)
    return envelope(
        "Order history fetched successfully",
        orders=[OrderDetailOut.model_validate(o).dump() for o in found],
    )


@router.post("/resto/{resto_id}/deliveredOrders", summary="Delivered Orders For a Day")
async def delivered_orders(resto_id: int, body: DateQuery, db: AsyncSession = Depends(get_db)) -> dict:
    found = await orders.orders_for_day(db, resto_id, body.day, status=OrderStatus.DELIVERED)
    return envelope(
        "Delivered orders fetched successfully",
        orders=[OrderDetailOut.model_validate(o).dump() for o in found],
    )


# =============================================================================
# ADS
# =============================================================================

@router.post("/resto/{resto_id}/runAds", summary="Create Ad")
async def run_ads(resto_id: int, body: AdCreate, db: AsyncSession = Depends(get_db)) -> dict:
    ad = await restaurants.create_ad(db, resto_id, body.menu_name, body.discount)
    return envelope("Ads created successfully", ads=AdOut.model_validate(ad).dump())


@router.get("/resto/{resto_id}/getAds", summary="List Ads")
async def get_ads(resto_id: int, db: AsyncSession = Depends(get_db)) -> dict:
    await restaurants.get_restaurant(db, resto_id)
    ads = await restaurants.list_ads(db, resto_id)
    return envelope("Ads fetched successfully", ads=[AdOut.model_validate(a).dump() for a in ads])


@router.delete("/resto/{resto_id}/deleteAds", summary="Delete Ad")
async def delete_ads(resto_id: int, body: AdDelete, db: AsyncSession = Depends(get_db)) -> dict:
    ad = await restaurants.delete_ad(db, resto_id, body.ads_id)
    return envelope("Ads deleted successfully", ads=AdOut.model_validate(ad).dump())


# =============================================================================
# ANALYTICS
# =============================================================================

@router.get("/dashboard/stats", summary="Dashboard Totals")
async def dashboard_stats() -> dict:
    data = await analytics.dashboard_stats(async_session_maker)
    return envelope("Dashboard stats fetched successfully", data=data)


@router.get("/analytics", summary="Chain Analytics")
async def admin_analytics(
    days: int = Query(analytics.DEFAULT_WINDOW_DAYS, ge=1, le=366),
    db: AsyncSession = Depends(get_db),
) -> dict:
    data = await analytics.admin_analytics(db, days)
    return envelope("Admin analytics fetched successfully", data=data)


@router.get("/resto/{resto_id}/analytics", summary="Restaurant Analytics")
async def restaurant_analytics(
    resto_id: int,
    days: int = Query(analytics.DEFAULT_WINDOW_DAYS, ge=1, le=366),
    db: AsyncSession = Depends(get_db),
) -> dict:
    data = await analytics.restaurant_analytics(db, resto_id, days)
    return envelope("Restaurant analytics fetched successfully", data=data)


# =============================================================================
# USERS
# =============================================================================

@router.get("/users", summary="List Customers")
async def list_users(db: AsyncSession = Depends(get_db)) -> dict:
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    users = [UserOut.model_validate(u).dump() for u in result.scalars().all()]
    return envelope("Users fetched successfully", users=users)


@router.get("/users/{user_id}/walletHistory", summary="Customer Wallet History")
async def user_wallet_history(user_id: int, db: AsyncSession = Depends(get_db)) -> dict:
    user = await accounts.get_user(db, user_id)
    entries = await wallet.history(db, user_id)
    return envelope(
        "Wallet history fetched successfully",
        user=UserOut.model_validate(user).dump(),
        history=[WalletTransactionOut.model_validate(e).dump() for e in entries],
    )


@router.post("/users/{user_id}/addWalletBalance", summary="Credit Customer Wallet")
async def admin_add_wallet_balance(
    user_id: int,
    body: WalletTopUp,
    db: AsyncSession = Depends(get_db),
) -> dict:
    entry, balance = await wallet.add_balance(db, user_id, body.amount, body.mode_of_payment)
    logger.info(f"Admin credited wallet of user #{user_id} with {body.amount}")
    return envelope(
        "Wallet balance updated successfully",
        userWallet=WalletTransactionOut.model_validate(entry).dump(),
        balance=balance,
    )
