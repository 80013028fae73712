"""
Restaurants, menu items and ads.

Every mutation that a menu-polling client can observe bumps the
restaurant's menu version in the same transaction.
"""

import logging
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cafechain.core.exceptions import Conflict, InvalidInput, NotFound, UpstreamError
from cafechain.models import Ad, MenuItem, OrderItem, Restaurant
from cafechain.services import menu_version
from cafechain.services.storage import BaseStorageService, make_object_name

logger = logging.getLogger(__name__)

VEG_TYPE = "veg"


def is_veg_type(food_type: Optional[str]) -> bool:
    return (food_type or "").strip().lower() == VEG_TYPE


# =============================================================================
# RESTAURANTS
# =============================================================================

async def get_restaurant(db: AsyncSession, restaurant_id: int) -> Restaurant:
    restaurant = await db.get(Restaurant, restaurant_id)
    if not restaurant:
        raise NotFound("Resto not found")
    return restaurant


async def create_restaurant(
    db: AsyncSession,
    name: str,
    location: str,
    contact_number: str,
) -> Restaurant:
    """
    Register a restaurant. It starts open with menu version 0.

    Raises:
        Conflict: Contact number already used by another restaurant
    """
    existing = await db.execute(
        select(Restaurant.id).where(Restaurant.contact_number == contact_number)
    )
    if existing.scalar_one_or_none() is not None:
        raise Conflict("Resto already exists")

    restaurant = Restaurant(
        name=name,
        location=location,
        contact_number=contact_number,
        is_open=True,
        menu_version=0,
    )
    db.add(restaurant)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Resto already exists")

    await db.refresh(restaurant)
    logger.info(f"Restaurant #{restaurant.id} created: {name}")
    return restaurant


async def list_restaurants(db: AsyncSession) -> list[Restaurant]:
    result = await db.execute(select(Restaurant).order_by(Restaurant.name.asc()))
    return list(result.scalars().all())


async def set_open(db: AsyncSession, restaurant_id: int, is_open: bool) -> Restaurant:
    """Open or close a restaurant."""
    restaurant = await get_restaurant(db, restaurant_id)
    restaurant.is_open = is_open
    await menu_version.bump(db, restaurant_id)
    await db.commit()
    await db.refresh(restaurant)

    logger.info(f"Restaurant #{restaurant_id} is now {'open' if is_open else 'closed'}")
    return restaurant


# =============================================================================
# MENU
# =============================================================================

async def get_menu_item(db: AsyncSession, restaurant_id: int, menu_id: int) -> MenuItem:
    """Menu item that belongs to the given restaurant."""
    item = await db.get(MenuItem, menu_id)
    if not item or item.restaurant_id != restaurant_id:
        raise NotFound("Menu not found")
    return item


async def list_menu(
    db: AsyncSession,
    restaurant_id: int,
    available_only: bool = False,
) -> list[MenuItem]:
    query = select(MenuItem).where(MenuItem.restaurant_id == restaurant_id)
    if available_only:
        query = query.where(MenuItem.availability.is_(True))
    query = query.order_by(MenuItem.availability.desc(), MenuItem.name.asc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def add_menu_item(
    db: AsyncSession,
    storage: BaseStorageService,
    restaurant_id: int,
    name: str,
    price: int,
    description: str,
    food_type: Optional[str],
    category: Optional[str],
    image: bytes,
    image_filename: Optional[str],
    image_content_type: str,
) -> MenuItem:
    """
    Upload the image and create the menu item.

    Raises:
        NotFound: Unknown restaurant
        UpstreamError: Image upload failed
    """
    await get_restaurant(db, restaurant_id)

    object_name = make_object_name(image_filename)
    stored = await storage.upload(object_name, image, image_content_type)
    if not stored.success:
        logger.error(f"Image upload for restaurant #{restaurant_id} failed: {stored.error_message}")
        raise UpstreamError("Failed to upload image")

    item = MenuItem(
        restaurant_id=restaurant_id,
        name=name,
        price=price,
        description=description,
        image_url=stored.public_url,
        is_veg=is_veg_type(food_type),
        category=category,
        availability=True,
    )
    db.add(item)
    await db.flush()
    await menu_version.bump(db, restaurant_id)
    await db.commit()

    logger.info(f"Menu item #{item.id} '{name}' added to restaurant #{restaurant_id}")
    return item


async def edit_menu_item(
    db: AsyncSession,
    restaurant_id: int,
    menu_id: int,
    name: Optional[str] = None,
    price: Optional[int] = None,
    description: Optional[str] = None,
    category: Optional[str] = None,
    food_type: Optional[str] = None,
) -> MenuItem:
    """Update the given fields of a menu item."""
    await get_restaurant(db, restaurant_id)
    item = await get_menu_item(db, restaurant_id, menu_id)

    if name is not None:
        item.name = name
    if price is not None:
        item.price = price
    if description is not None:
        item.description = description
    if category is not None:
        item.category = category
    if food_type is not None:
        item.is_veg = is_veg_type(food_type)

    await menu_version.bump(db, restaurant_id)
    await db.commit()
    await db.refresh(item)

    logger.info(f"Menu item #{menu_id} updated")
    return item


async def set_availability(
    db: AsyncSession,
    restaurant_id: int,
    menu_id: int,
    available: bool,
) -> MenuItem:
    await get_restaurant(db, restaurant_id)
    item = await get_menu_item(db, restaurant_id, menu_id)

    item.availability = available
    await menu_version.bump(db, restaurant_id)
    await db.commit()
    await db.refresh(item)

    logger.info(f"Menu item #{menu_id} availability -> {available}")
    return item


async def delete_menu_item(db: AsyncSession, restaurant_id: int, menu_id: int) -> MenuItem:
    """
    Delete a menu item and its ads.

    Past order lines keep their name and price snapshot and lose the link.
    """
    await get_restaurant(db, restaurant_id)
    item = await get_menu_item(db, restaurant_id, menu_id)

    await db.execute(delete(Ad).where(Ad.menu_item_id == menu_id))
    await db.execute(
        update(OrderItem)
        .where(OrderItem.menu_item_id == menu_id)
        .values(menu_item_id=None)
    )
    await db.delete(item)
    await menu_version.bump(db, restaurant_id)
    await db.commit()

    logger.info(f"Menu item #{menu_id} deleted from restaurant #{restaurant_id}")
    return item


# =============================================================================
# ADS
# =============================================================================

async def create_ad(db: AsyncSession, restaurant_id: int, menu_name: str, discount: int) -> Ad:
    await get_restaurant(db, restaurant_id)

    result = await db.execute(
        select(MenuItem)
        .where(MenuItem.restaurant_id == restaurant_id, MenuItem.name == menu_name)
        .limit(1)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise NotFound("Menu not found")

    if not 0 < discount <= 100:
        raise InvalidInput("Discount must be between 1 and 100")

    ad = Ad(restaurant_id=restaurant_id, menu_item_id=item.id, discount=discount)
    db.add(ad)
    await db.commit()
    await db.refresh(ad)

    logger.info(f"Ad #{ad.id} created for menu item #{item.id} ({discount}% off)")
    return ad


async def list_ads(db: AsyncSession, restaurant_id: int) -> list[Ad]:
    result = await db.execute(
        select(Ad).where(Ad.restaurant_id == restaurant_id).order_by(Ad.id)
    )
    return list(result.scalars().all())


async def delete_ad(db: AsyncSession, restaurant_id: int, ad_id: int) -> Ad:
    ad = await db.get(Ad, ad_id)
    if not ad or ad.restaurant_id != restaurant_id:
        raise NotFound("Ads not found")

    await db.delete(ad)
    await db.commit()

    logger.info(f"Ad #{ad_id} deleted")
    return ad
