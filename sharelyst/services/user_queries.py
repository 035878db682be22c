from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sharelyst.models.user import User

async def get_user_by_id(db: AsyncSession, user_id: int):
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()
