from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sharelyst.core.dependencies import get_current_group_id, get_current_user
from sharelyst.core.utils import qround
from sharelyst.db.session import get_db
from sharelyst.schemas.transaction import (
    GroupTotalOut,
    PaymentInput,
    TransactionCreate,
    TransactionDetailOut,
    TransactionOut,
)
from sharelyst.services.ledger_queries import get_group_total
from sharelyst.services.transaction_services import create_transaction, list_group_transactions

router = APIRouter()


@router.post("/create", response_model=TransactionOut, status_code=201)
async def add_transaction(
    data: TransactionCreate,
    db: AsyncSession = Depends(get_db),
    group_id: int = Depends(get_current_group_id),
):
    transaction = await create_transaction(db, data, group_id)
    return TransactionOut(
        id=transaction.id,
        code=transaction.code,
        name=transaction.name,
        total=transaction.total,
        split=transaction.split,
        payments=[
            PaymentInput(user_id=p.user_id, amount=qround(p.amount)) for p in data.payments
        ],
    )


@router.get("/total", response_model=GroupTotalOut)
async def group_total(
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    if user.group_id is None:
        return GroupTotalOut(total=0)
    return GroupTotalOut(total=await get_group_total(db, user.group_id))


@router.get("/my-group", response_model=List[TransactionDetailOut])
async def group_transactions(
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    if user.group_id is None:
        return []
    return await list_group_transactions(db, user.group_id)
