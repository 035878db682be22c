import logging
from decimal import Decimal
from typing import List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from sharelyst.core.exceptions import (
    GroupNotFoundError,
    InvalidActionError,
    UnbalancedLedgerError,
)
from sharelyst.core.utils import EPSILON, qround
from sharelyst.schemas.settlements import (
    MemberSummary,
    SettleAction,
    SettlementReport,
    SettleResult,
    Transfer,
)
from sharelyst.services.balance_service import MemberBalance, compute_balances
from sharelyst.services.ledger_queries import (
    delete_group_ledger,
    delete_group_record,
    detach_members,
    get_group,
)

logger = logging.getLogger(__name__)


def _match(debtors, creditors, tolerance: Decimal, transfers: List[Transfer]):
    for debtor in debtors:
        for creditor in creditors:
            if debtor[1] <= tolerance:
                break
            if creditor[1] <= tolerance:
                continue

            amount = qround(min(debtor[1], creditor[1]))

            transfers.append(Transfer(
                from_id=debtor[0].member_id,
                from_name=debtor[0].display_name,
                to_id=creditor[0].member_id,
                to_name=creditor[0].display_name,
                amount=amount,
            ))

            debtor[1] -= amount
            creditor[1] -= amount


def _unmatched(entries):
    return [(entry[0].member_id, entry[1]) for entry in entries if entry[1] > EPSILON]


def plan_transfers(balances: Sequence[MemberBalance]) -> List[Transfer]:
    """
    Greedy debt netting.

    Debtors and creditors are walked in input order; each debtor pays the
    creditors in turn until their debt is within one cent of zero. At most
    n-1 transfers come out, which is not guaranteed to be the global minimum.

    Members within one cent of their share sit out. When enough of them
    together hold more than a cent (tiny totals split many ways), a second
    pass lets them settle the remainder.
    """
    net = sum((b.net for b in balances), Decimal("0"))
    if abs(net) > EPSILON:
        logger.critical(
            "Refusing to plan: member balances sum to %s, not zero", net
        )
        raise UnbalancedLedgerError()

    debtors = []
    creditors = []
    small_debtors = []
    small_creditors = []

    for b in balances:
        if b.net < -EPSILON:
            debtors.append([b, -b.net])
        elif b.net > EPSILON:
            creditors.append([b, b.net])
        elif b.net < 0:
            small_debtors.append([b, -b.net])
        elif b.net > 0:
            small_creditors.append([b, b.net])

    transfers: List[Transfer] = []
    _match(debtors, creditors, EPSILON, transfers)

    if _unmatched(debtors + creditors):
        _match(debtors + small_debtors, creditors + small_creditors, Decimal("0"), transfers)

    leftover = _unmatched(debtors + creditors)
    if leftover:
        logger.critical(
            "Settlement left unmatched amounts %s after %d transfers",
            leftover,
            len(transfers),
        )
        raise UnbalancedLedgerError()

    return transfers


async def compute_settlement(db: AsyncSession, group_id: int) -> SettlementReport:
    sheet = await compute_balances(db, group_id)
    transfers = plan_transfers(sheet.members)

    return SettlementReport(
        total=sheet.total,
        per_person_amount=sheet.per_person,
        users_summary=[
            MemberSummary(
                id=m.member_id,
                name=m.display_name,
                amount_paid=m.amount_paid,
                should_pay=m.should_pay,
                difference=m.difference,
            )
            for m in sheet.members
        ],
        transactions=transfers,
    )


def parse_action(action) -> SettleAction:
    if isinstance(action, SettleAction):
        return action
    try:
        return SettleAction(action)
    except ValueError:
        raise InvalidActionError()


async def settle_group(db: AsyncSession, group_id: int, action) -> SettleResult:
    """
    Close the group's current settlement cycle.

    ``reset`` drops every payment and transaction of the group. ``delete``
    also detaches all members and removes the group. Everything is
    committed once; on failure nothing is applied.
    """
    action = parse_action(action)

    group = await get_group(db, group_id)
    if not group:
        raise GroupNotFoundError()

    try:
        await delete_group_ledger(db, group_id)

        if action is SettleAction.DELETE:
            await detach_members(db, group_id)
            await delete_group_record(db, group_id)

        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Settle %s failed for group %s, rolled back", action.value, group_id)
        raise

    logger.info("Group %s settled with action %s", group_id, action.value)
    return SettleResult(action=action)
