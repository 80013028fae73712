"""
Wallet ledger.

``User.balance`` is the running sum of the account's
``WalletTransaction`` rows. Every change inserts the ledger row and
applies ``balance = balance + amount`` in the same transaction, so the
two cannot drift and concurrent top-ups cannot overwrite each other.
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cafechain.core.exceptions import InvalidInput, NotFound
from cafechain.models import User, WalletTransaction

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10


async def _apply(
    db: AsyncSession,
    user_id: int,
    amount: int,
    payment_mode: Optional[str],
    require_funds: bool = False,
) -> tuple[WalletTransaction, int]:
    """Insert a ledger row and move the balance by ``amount``; caller commits."""
    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(balance=User.balance + amount)
        .returning(User.balance)
    )
    if require_funds:
        stmt = stmt.where(User.balance >= -amount)

    result = await db.execute(stmt)
    balance = result.scalar_one_or_none()

    if balance is None:
        if require_funds and await db.get(User, user_id) is not None:
            raise InvalidInput("Insufficient wallet balance")
        raise NotFound("User not found")

    entry = WalletTransaction(user_id=user_id, amount=amount, payment_mode=payment_mode)
    db.add(entry)
    await db.flush()

    return entry, balance


async def add_balance(
    db: AsyncSession,
    user_id: int,
    amount: int,
    payment_mode: Optional[str] = None,
) -> tuple[WalletTransaction, int]:
    """
    Credit the wallet.

    Returns:
        (ledger entry, new balance)
    """
    if amount <= 0:
        raise InvalidInput("Amount must be positive")

    entry, balance = await _apply(db, user_id, amount, payment_mode)
    await db.commit()

    logger.info(f"Wallet of user #{user_id} credited {amount} via {payment_mode or 'unknown'} (balance {balance})")
    return entry, balance


async def debit(
    db: AsyncSession,
    user_id: int,
    amount: int,
    payment_mode: str,
) -> tuple[WalletTransaction, int]:
    """
    Charge the wallet inside the caller's transaction (no commit).

    Raises:
        InvalidInput: Balance lower than ``amount``
    """
    if amount <= 0:
        raise InvalidInput("Amount must be positive")

    return await _apply(db, user_id, -amount, payment_mode, require_funds=True)


async def get_balance(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(select(User.balance).where(User.id == user_id))
    balance = result.scalar_one_or_none()
    if balance is None:
        raise NotFound("User not found")
    return balance


async def history(db: AsyncSession, user_id: int, limit: int = HISTORY_LIMIT) -> list[WalletTransaction]:
    """Most recent ledger entries, newest first."""
    result = await db.execute(
        select(WalletTransaction)
        .where(WalletTransaction.user_id == user_id)
        .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
