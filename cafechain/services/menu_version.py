"""
Menu Version Counter

Per-restaurant staleness signal. Every operation that changes what a
client polling a restaurant's menu or orders would see calls ``bump``
inside its own transaction, before committing:

    - menu item added, edited, deleted or availability toggled
    - order status changed
    - restaurant opened or closed

Clients compare ``read`` against their cached version and refetch only
when it moved.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cafechain.core.exceptions import NotFound
from cafechain.models import Restaurant

logger = logging.getLogger(__name__)


async def bump(db: AsyncSession, restaurant_id: int) -> int:
    """
    Increment the restaurant's menu version in the current transaction.

    Runs as a single ``UPDATE ... SET menu_version = menu_version + 1``
    so concurrent bumps never lose an increment. The caller commits.

    Returns:
        The new version

    Raises:
        NotFound: If the restaurant does not exist
    """
    result = await db.execute(
        update(Restaurant)
        .where(Restaurant.id == restaurant_id)
        .values(menu_version=Restaurant.menu_version + 1)
        .returning(Restaurant.menu_version)
    )
    version = result.scalar_one_or_none()

    if version is None:
        raise NotFound("Resto not found")

    logger.debug(f"Restaurant #{restaurant_id} menu version -> {version}")
    return version


async def read(db: AsyncSession, restaurant_id: int) -> int:
    """Current menu version of a restaurant."""
    result = await db.execute(
        select(Restaurant.menu_version).where(Restaurant.id == restaurant_id)
    )
    version = result.scalar_one_or_none()

    if version is None:
        raise NotFound("Resto not found")

    return version
