from dataclasses import dataclass
from decimal import Decimal
from typing import List

from sqlalchemy import select, func, delete, update, and_, or_, exists
from sqlalchemy.ext.asyncio import AsyncSession

from sharelyst.core.utils import to_money
from sharelyst.models.group import Group
from sharelyst.models.payment import Payment
from sharelyst.models.transaction import Transaction
from sharelyst.models.user import User


@dataclass(frozen=True)
class MemberPayment:
    member_id: int
    display_name: str
    amount_paid: Decimal


async def get_group(db: AsyncSession, group_id: int):
    res = await db.execute(select(Group).where(Group.id == group_id))
    return res.scalar_one_or_none()


async def get_group_by_code(db: AsyncSession, code: int):
    res = await db.execute(select(Group).where(Group.code == code))
    return res.scalar_one_or_none()


async def get_group_total(db: AsyncSession, group_id: int) -> Decimal:
    q = select(func.coalesce(func.sum(Transaction.total), 0)).where(
        Transaction.group_id == group_id
    )
    return to_money(await db.scalar(q))


async def get_member_payments(db: AsyncSession, group_id: int) -> List[MemberPayment]:
    """
    Every member of the group with the sum of their payments into it.

    Members without payments get 0. Rows come back ordered by user id so
    downstream netting is reproducible.
    """
    q = (
        select(
            User.id,
            User.first_name,
            User.last_name,
            func.coalesce(func.sum(Payment.amount), 0).label("paid"),
        )
        .outerjoin(
            Payment,
            and_(Payment.user_id == User.id, Payment.group_id == group_id),
        )
        .where(User.group_id == group_id)
        .group_by(User.id, User.first_name, User.last_name)
        .order_by(User.id.asc())
    )

    res = await db.execute(q)
    return [
        MemberPayment(
            member_id=row.id,
            display_name=f"{row.first_name} {row.last_name}",
            amount_paid=to_money(row.paid),
        )
        for row in res
    ]


async def count_members(db: AsyncSession, group_id: int) -> int:
    q = select(func.count(User.id)).where(User.group_id == group_id)
    return int(await db.scalar(q) or 0)


async def has_open_ledger(db: AsyncSession, group_id: int) -> bool:
    """True while the group holds any transaction or payment."""
    q = select(or_(
        exists().where(Transaction.group_id == group_id),
        exists().where(Payment.group_id == group_id),
    ))
    return bool(await db.scalar(q))


async def get_group_transactions(db: AsyncSession, group_id: int) -> List[Transaction]:
    q = (
        select(Transaction)
        .where(Transaction.group_id == group_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def get_transaction_payments(db: AsyncSession, transaction_ids: List[int]):
    """Payments of the given transactions joined with their payers, in id order."""
    if not transaction_ids:
        return []

    q = (
        select(
            Payment.id,
            Payment.transaction_id,
            Payment.user_id,
            Payment.amount,
            User.username,
            User.first_name,
            User.last_name,
        )
        .join(User, User.id == Payment.user_id)
        .where(Payment.transaction_id.in_(transaction_ids))
        .order_by(Payment.id.asc())
    )
    res = await db.execute(q)
    return res.all()

# The writers below never commit; the caller owns the unit of work.

async def delete_group_ledger(db: AsyncSession, group_id: int):
    await db.execute(delete(Payment).where(Payment.group_id == group_id))
    await db.execute(delete(Transaction).where(Transaction.group_id == group_id))


async def detach_members(db: AsyncSession, group_id: int):
    await db.execute(
        update(User)
        .where(User.group_id == group_id)
        .values(group_id=None)
        .execution_options(synchronize_session="fetch")
    )


async def delete_group_record(db: AsyncSession, group_id: int):
    await db.execute(delete(Group).where(Group.id == group_id))
