import random
from collections import defaultdict
from decimal import Decimal

import pytest

from sharelyst.core.exceptions import UnbalancedLedgerError
from sharelyst.services.balance_service import MemberBalance, build_balance_sheet
from sharelyst.services.ledger_queries import MemberPayment
from sharelyst.services.settlement_service import plan_transfers

D = Decimal


def payments(*amounts):
    """Members 1..n named A, B, C... paying the given amounts."""
    return [
        MemberPayment(member_id=i + 1, display_name=chr(ord("A") + i), amount_paid=D(str(a)))
        for i, a in enumerate(amounts)
    ]


def balance(member_id, difference, name=None):
    return MemberBalance(
        member_id=member_id,
        display_name=name or f"member {member_id}",
        amount_paid=D("0"),
        should_pay=D("0"),
        difference=D(difference),
        net=D(difference),
    )


def as_tuples(transfers):
    return [(t.from_name, t.to_name, t.amount) for t in transfers]


def replay(balances, transfers):
    """Apply transfers to the starting balances; a settled plan leaves ~0 everywhere."""
    net = {b.member_id: b.net for b in balances}
    for t in transfers:
        net[t.from_id] += t.amount
        net[t.to_id] -= t.amount
    return net


def test_one_payer_three_members():
    sheet = build_balance_sheet(D("30.00"), payments(30, 0, 0))

    assert sheet.per_person == D("10.00")
    assert [m.difference for m in sheet.members] == [D("20.00"), D("-10.00"), D("-10.00")]
    assert as_tuples(plan_transfers(sheet.members)) == [
        ("B", "A", D("10.00")),
        ("C", "A", D("10.00")),
    ]


def test_equal_payers_need_no_transfers():
    sheet = build_balance_sheet(D("50.00"), payments(25, 25))

    assert [m.difference for m in sheet.members] == [D("0.00"), D("0.00")]
    assert plan_transfers(sheet.members) == []


def test_one_payer_four_members():
    sheet = build_balance_sheet(D("100.00"), payments(100, 0, 0, 0))

    assert sheet.per_person == D("25.00")
    assert [m.difference for m in sheet.members] == [D("75.00"), D("-25.00"), D("-25.00"), D("-25.00")]
    assert as_tuples(plan_transfers(sheet.members)) == [
        ("B", "A", D("25.00")),
        ("C", "A", D("25.00")),
        ("D", "A", D("25.00")),
    ]


def test_debtor_split_across_creditors():
    balances = [balance(1, "30"), balance(2, "-45"), balance(3, "15")]

    transfers = plan_transfers(balances)

    assert [(t.from_id, t.to_id, t.amount) for t in transfers] == [
        (2, 1, D("30.00")),
        (2, 3, D("15.00")),
    ]


def test_creditor_filled_by_several_debtors():
    balances = [balance(1, "-5"), balance(2, "-7.50"), balance(3, "20"), balance(4, "-7.50")]

    transfers = plan_transfers(balances)

    assert [(t.from_id, t.to_id, t.amount) for t in transfers] == [
        (1, 3, D("5.00")),
        (2, 3, D("7.50")),
        (4, 3, D("7.50")),
    ]


def test_members_within_a_cent_are_left_out():
    balances = [balance(1, "10.01"), balance(2, "-0.01"), balance(3, "-10.00")]

    transfers = plan_transfers(balances)

    assert [(t.from_id, t.to_id, t.amount) for t in transfers] == [(3, 1, D("10.00"))]


def test_empty_input():
    assert plan_transfers([]) == []


def test_names_are_carried_on_transfers():
    balances = [balance(1, "12.50", "Ada Lovelace"), balance(2, "-12.50", "Alan Turing")]

    [transfer] = plan_transfers(balances)

    assert transfer.from_name == "Alan Turing"
    assert transfer.to_name == "Ada Lovelace"
    assert transfer.model_dump(by_alias=True, mode="json") == {
        "fromId": 2,
        "from": "Alan Turing",
        "toId": 1,
        "to": "Ada Lovelace",
        "amount": 12.5,
    }


def test_non_zero_sum_input_is_rejected():
    with pytest.raises(UnbalancedLedgerError):
        plan_transfers([balance(1, "5.00"), balance(2, "-3.00")])


def test_payments_that_do_not_cover_the_total_are_rejected():
    sheet = build_balance_sheet(D("40.00"), payments(30, 0, 0))

    with pytest.raises(UnbalancedLedgerError):
        plan_transfers(sheet.members)


def test_same_input_same_plan():
    sheet = build_balance_sheet(D("87.35"), payments("40.10", "0", "17.25", "30", "0"))

    first = plan_transfers(sheet.members)
    second = plan_transfers(sheet.members)

    assert first == second
    assert first  # something to settle


def test_random_ledgers_settle_completely():
    rng = random.Random(20261018)

    for _ in range(200):
        size = rng.randint(1, 8)
        cents = [rng.choice([0, rng.randint(1, 50000)]) for _ in range(size)]
        amounts = [D(c) / 100 for c in cents]
        total = sum(amounts, D("0"))

        sheet = build_balance_sheet(total, payments(*amounts))
        transfers = plan_transfers(sheet.members)

        assert sum(m.net for m in sheet.members) == 0
        assert len(transfers) <= max(size - 1, 0)
        for t in transfers:
            assert t.from_id != t.to_id
            assert t.amount > 0

        for member_id, remaining in replay(sheet.members, transfers).items():
            assert abs(remaining) <= D("0.01"), (member_id, remaining)


def test_each_member_pays_or_receives_never_both():
    sheet = build_balance_sheet(D("120.00"), payments(60, 45, 15, 0))
    transfers = plan_transfers(sheet.members)

    payers = {t.from_id for t in transfers}
    receivers = {t.to_id for t in transfers}
    assert payers.isdisjoint(receivers)

    received = defaultdict(Decimal)
    for t in transfers:
        received[t.to_id] += t.amount
    assert received == {1: D("30.00"), 2: D("15.00")}


def test_tiny_total_split_many_ways_still_settles():
    sheet = build_balance_sheet(D("0.03"), payments("0.03", 0, 0, 0))

    assert [m.difference for m in sheet.members] == [D("0.02"), D("-0.01"), D("-0.01"), D("-0.01")]
    assert [m.net for m in sheet.members] == [D("0.03"), D("-0.01"), D("-0.01"), D("-0.01")]
    assert as_tuples(plan_transfers(sheet.members)) == [
        ("B", "A", D("0.01")),
        ("C", "A", D("0.01")),
        ("D", "A", D("0.01")),
    ]


def test_transfers_cover_the_apportioned_cent():
    sheet = build_balance_sheet(D("100.00"), payments(100, 0, 0))

    assert [m.difference for m in sheet.members] == [D("66.67"), D("-33.33"), D("-33.33")]
    assert as_tuples(plan_transfers(sheet.members)) == [
        ("B", "A", D("33.33")),
        ("C", "A", D("33.34")),
    ]
