from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from sharelyst.core.exceptions import EmptyGroupError, GroupNotFoundError
from sharelyst.core.utils import ZERO, qround, to_cents, from_cents, to_money
from sharelyst.services.ledger_queries import (
    MemberPayment,
    get_group,
    get_group_total,
    get_member_payments,
)


@dataclass(frozen=True)
class MemberBalance:
    member_id: int
    display_name: str
    amount_paid: Decimal
    should_pay: Decimal
    difference: Decimal  # amount_paid - should_pay, > 0 is owed money
    net: Decimal  # difference apportioned so the group nets to exactly 0


@dataclass(frozen=True)
class BalanceSheet:
    total: Decimal
    per_person: Decimal
    members: List[MemberBalance] = field(default_factory=list)


def apportion_differences(paid_cents: Sequence[int], total_cents: int) -> List[int]:
    """
    Signed difference from an equal share, in whole cents, per member.

    The exact difference of member i is (paid_i * n - total) / n cents.
    Each one is floored and the leftover cents go to the largest
    remainders (ties by position), so a balanced ledger nets to exactly 0.
    """
    n = len(paid_cents)
    floors = []
    remainders = []
    for paid in paid_cents:
        q, r = divmod(paid * n - total_cents, n)
        floors.append(q)
        remainders.append(r)

    extra = sum(remainders) // n
    by_remainder = sorted(range(n), key=lambda i: (-remainders[i], i))
    for i in by_remainder[:extra]:
        floors[i] += 1
    return floors


def build_balance_sheet(total: Decimal, payments: Sequence[MemberPayment]) -> BalanceSheet:
    """Members see ``difference``; transfers are planned from ``net``."""
    total = to_money(total)

    if total == ZERO:
        members = [
            MemberBalance(
                member_id=p.member_id,
                display_name=p.display_name,
                amount_paid=to_money(p.amount_paid),
                should_pay=ZERO,
                difference=ZERO,
                net=ZERO,
            )
            for p in payments
        ]
        return BalanceSheet(total=ZERO, per_person=ZERO, members=members)

    if not payments:
        raise EmptyGroupError()

    per_person = qround(total / len(payments))
    nets = apportion_differences(
        [to_cents(p.amount_paid) for p in payments], to_cents(total)
    )

    members = [
        MemberBalance(
            member_id=p.member_id,
            display_name=p.display_name,
            amount_paid=to_money(p.amount_paid),
            should_pay=per_person,
            difference=to_money(p.amount_paid) - per_person,
            net=from_cents(net),
        )
        for p, net in zip(payments, nets)
    ]
    return BalanceSheet(total=total, per_person=per_person, members=members)


async def compute_balances(db: AsyncSession, group_id: int) -> BalanceSheet:
    group = await get_group(db, group_id)
    if not group:
        raise GroupNotFoundError()

    total = await get_group_total(db, group_id)
    payments = await get_member_payments(db, group_id)

    return build_balance_sheet(total, payments)
