import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from sharelyst.core.exceptions import (
    AlreadyInGroupError,
    GroupNotFoundError,
    NotInGroupError,
    UnsettledGroupError,
)
from sharelyst.core.utils import generate_code
from sharelyst.models.group import Group
from sharelyst.models.user import User
from sharelyst.services.ledger_queries import (
    count_members,
    delete_group_ledger,
    delete_group_record,
    get_group,
    get_group_by_code,
    has_open_ledger,
)

logger = logging.getLogger(__name__)


async def create_group(db: AsyncSession, user: User, name: str | None = None,
                       description: str | None = None, max_retries: int = 5):
    if user.group_id is not None:
        raise AlreadyInGroupError()

    for _ in range(max_retries):
        code = generate_code()
        if await get_group_by_code(db, code):
            continue

        group = Group(code=code, name=name, description=description)
        db.add(group)
        await db.flush()  # generates group.id

        user.group_id = group.id
        await db.commit()
        await db.refresh(group)
        logger.info("User %s created group %s (code %s)", user.id, group.id, group.code)
        return group

    raise RuntimeError("Could not generate a unique group code")


async def join_group(db: AsyncSession, user: User, code: int):
    if user.group_id is not None:
        raise AlreadyInGroupError()

    group = await get_group_by_code(db, code)
    if not group:
        raise GroupNotFoundError()

    user.group_id = group.id
    await db.commit()
    logger.info("User %s joined group %s", user.id, group.id)
    return group


async def get_group_with_members(db: AsyncSession, group_id: int):
    group = await get_group(db, group_id)
    if not group:
        raise GroupNotFoundError()

    q = select(User).where(User.group_id == group_id).order_by(User.id)
    res = await db.execute(q)
    return group, res.scalars().all()


async def leave_group(db: AsyncSession, user: User):
    """
    Detach the user; the last member out takes the group with them.

    Anyone else can only leave once the group's ledger is empty.
    """
    if user.group_id is None:
        raise NotInGroupError("You are not in any group")

    group_id = user.group_id
    if await count_members(db, group_id) > 1 and await has_open_ledger(db, group_id):
        raise UnsettledGroupError()

    try:
        user.group_id = None
        await db.flush()

        if await count_members(db, group_id) == 0:
            await delete_group_ledger(db, group_id)
            await delete_group_record(db, group_id)
            logger.info("Group %s deleted after its last member left", group_id)

        await db.commit()
    except Exception:
        await db.rollback()
        raise
