from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sharelyst.core.dependencies import get_current_group_id, get_current_user
from sharelyst.db.session import get_db
from sharelyst.schemas.group import GroupCreate, GroupDetailOut, GroupJoin, GroupOut, MemberOut
from sharelyst.services.group_services import (
    create_group,
    get_group_with_members,
    join_group,
    leave_group,
)

router = APIRouter()

@router.post("/create", response_model=GroupOut, status_code=201)
async def create_new_group(
    data: GroupCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await create_group(db, user, data.name, data.description)

@router.post("/join", response_model=GroupOut)
async def join(data: GroupJoin, db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await join_group(db, user, data.code)

@router.get("/my-group", response_model=GroupDetailOut)
async def my_group(db: AsyncSession = Depends(get_db), group_id: int = Depends(get_current_group_id)):
    group, members = await get_group_with_members(db, group_id)
    return GroupDetailOut(
        id=group.id,
        code=group.code,
        name=group.name,
        description=group.description,
        members=[MemberOut.model_validate(m) for m in members],
    )

@router.post("/leave")
async def leave(db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    await leave_group(db, user)
    return {"message": "Successfully left the group"}
