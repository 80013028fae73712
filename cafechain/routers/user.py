"""
Customer routes: ordering, menu browsing, wallet and profile.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cafechain.core.config import get_settings
from cafechain.core.security import Session, UserSession
from cafechain.database import get_db
from cafechain.dependencies import get_session, require_user
from cafechain.schemas import (
    MenuItemOut,
    OrderCreate,
    OrderOut,
    UserOut,
    WalletTopUp,
    WalletTransactionOut,
    envelope,
)
from cafechain.services import accounts, orders, restaurants, wallet

router = APIRouter(prefix="/user", tags=["User"])


@router.post("/resto/{resto_id}/order", summary="Place Order")
async def create_order(
    resto_id: int,
    body: OrderCreate,
    session: UserSession = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Place an order at a restaurant.

    Items are matched by ``menuId`` or by ``dishName`` within the
    restaurant. ``paymentMethod: "wallet"`` charges the wallet.
    """
    order = await orders.place_order(
        db,
        user_id=session.user_id,
        restaurant_id=resto_id,
        total_price=body.total_price,
        lines=[(i.menu_id, i.dish_name, i.quantity) for i in body.order_items],
        payment_method=body.payment_method,
        delivery_type=body.delivery_type,
    )
    return envelope("Order created successfully", order=OrderOut.model_validate(order).dump())


@router.get("/resto/{resto_id}/menu", summary="Available Menu")
async def available_menu(
    resto_id: int,
    session: Session = Depends(get_session),
    db: AsyncSession = Depends(get_db),
) -> dict:
    restaurant = await restaurants.get_restaurant(db, resto_id)
    if not restaurant.is_open:
        return envelope("Resto is closed", menu=[], menuVersion=restaurant.menu_version)

    items = await restaurants.list_menu(db, resto_id, available_only=True)
    return envelope(
        "Menu fetched successfully",
        menu=[MenuItemOut.model_validate(i).dump() for i in items],
        menuVersion=restaurant.menu_version,
    )


@router.get("/orderHistory", summary="My Orders")
async def order_history(
    session: UserSession = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    found = await orders.user_orders(db, session.user_id)
    return envelope(
        "Orders fetched successfully",
        orders=[OrderOut.model_validate(o).dump() for o in found],
    )


@router.post("/addWalletBalance", summary="Top Up Wallet")
async def add_wallet_balance(
    body: WalletTopUp,
    session: UserSession = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    entry, balance = await wallet.add_balance(db, session.user_id, body.amount, body.mode_of_payment)
    return envelope(
        "Wallet balance updated successfully",
        userWallet=WalletTransactionOut.model_validate(entry).dump(),
        balance=balance,
    )


@router.get("/getWalletBalance", summary="Wallet Balance")
async def get_wallet_balance(
    session: UserSession = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    balance = await wallet.get_balance(db, session.user_id)
    return envelope("Wallet balance fetched successfully", balance=balance)


@router.get("/userInfo", summary="Profile")
async def user_info(
    session: Session = Depends(get_session),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Profile of the logged-in customer, or the admin pseudo-profile."""
    if session.is_admin:
        settings = get_settings()
        admin = {
            "id": None,
            "name": "Admin",
            "email": settings.admin_email,
            "number": settings.admin_phone,
            "isVerify": True,
            "isAdmin": True,
        }
        return envelope("Admin info fetched successfully", user=admin)

    user = await accounts.get_user(db, session.user_id)
    return envelope(
        "User info fetched successfully",
        user={**UserOut.model_validate(user).dump(), "isAdmin": False},
    )


@router.get("/walletHistory", summary="Recent Wallet Transactions")
async def wallet_history(
    session: UserSession = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    entries = await wallet.history(db, session.user_id)
    return envelope(
        "Wallet history fetched successfully",
        history=[WalletTransactionOut.model_validate(e).dump() for e in entries],
    )


@router.get("/restaurants", summary="Public Restaurant List")
async def list_restaurants(db: AsyncSession = Depends(get_db)) -> dict:
    found = await restaurants.list_restaurants(db)
    return envelope(
        "Restaurants fetched successfully",
        restaurants=[
            {"id": r.id, "name": r.name, "location": r.location, "open": r.is_open}
            for r in found
        ],
    )
