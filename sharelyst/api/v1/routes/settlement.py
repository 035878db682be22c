from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sharelyst.core.dependencies import get_current_group_id, get_current_user
from sharelyst.db.session import get_db
from sharelyst.schemas.settlements import SettlementReport, SettleRequest, SettleResult
from sharelyst.services.settlement_service import compute_settlement, settle_group

router = APIRouter()


@router.get("/split-bills", response_model=SettlementReport)
async def split_bills(
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    # not being in a group is not an error here, there is just nothing to split
    if user.group_id is None:
        return SettlementReport(total=0, per_person_amount=0)
    return await compute_settlement(db, user.group_id)


@router.post("/settle-bills", response_model=SettleResult)
async def settle_bills(
    data: SettleRequest,
    db: AsyncSession = Depends(get_db),
    group_id: int = Depends(get_current_group_id),
):
    return await settle_group(db, group_id, data.action)
