from collections import defaultdict
from decimal import Decimal
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharelyst.core.exceptions import InvalidTransactionError
from sharelyst.core.utils import ZERO, generate_code, qround, to_money
from sharelyst.models.payment import Payment, PAYMENT_TYPE_TRANSACTION
from sharelyst.models.transaction import Transaction
from sharelyst.models.user import User
from sharelyst.schemas.transaction import PaymentDetailOut, TransactionCreate, TransactionDetailOut
from sharelyst.services.ledger_queries import get_group_transactions, get_transaction_payments


async def _unused_transaction_code(db: AsyncSession, max_retries: int = 5) -> int:
    for _ in range(max_retries):
        code = generate_code()
        taken = await db.scalar(select(Transaction.id).where(Transaction.code == code))
        if not taken:
            return code
    raise RuntimeError("Could not generate a unique transaction code")


async def create_transaction(db: AsyncSession, data: TransactionCreate, group_id: int):
    total = qround(data.total)
    if total <= ZERO:
        raise InvalidTransactionError("Total must be a positive number")

    user_ids = {p.user_id for p in data.payments}
    q = select(User.id).where(User.group_id == group_id, User.id.in_(user_ids))
    res = await db.execute(q)
    members = set(res.scalars().all())

    for p in data.payments:
        if p.user_id not in members:
            raise InvalidTransactionError(f"User {p.user_id} is not in your group")

    amounts = [qround(p.amount) for p in data.payments]
    payment_sum = sum(amounts, Decimal("0"))
    # stored payments must net to the stored total, to the cent
    if payment_sum != total:
        raise InvalidTransactionError(
            f"Payment amounts ({payment_sum}) must equal total ({total})"
        )

    transaction = Transaction(
        code=await _unused_transaction_code(db),
        name=data.name,
        total=total,
        split=data.split,
        group_id=group_id,
    )
    db.add(transaction)
    await db.flush()  # generates transaction.id

    db.add_all([
        Payment(
            amount=amount,
            user_id=p.user_id,
            transaction_id=transaction.id,
            group_id=group_id,
            payment_type=PAYMENT_TYPE_TRANSACTION,
        )
        for p, amount in zip(data.payments, amounts)
    ])

    await db.commit()
    await db.refresh(transaction)
    return transaction


async def list_group_transactions(db: AsyncSession, group_id: int) -> List[TransactionDetailOut]:
    """The group's transactions, newest first, each with its payers."""
    transactions = await get_group_transactions(db, group_id)
    rows = await get_transaction_payments(db, [t.id for t in transactions])

    payments = defaultdict(list)
    for row in rows:
        payments[row.transaction_id].append(PaymentDetailOut(
            user_id=row.user_id,
            username=row.username,
            first_name=row.first_name,
            last_name=row.last_name,
            amount=to_money(row.amount),
        ))

    return [
        TransactionDetailOut(
            id=t.id,
            code=t.code,
            name=t.name,
            total=to_money(t.total),
            split=t.split,
            created_at=t.created_at,
            payments=payments[t.id],
        )
        for t in transactions
    ]
