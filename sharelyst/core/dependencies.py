from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sharelyst.core.exceptions import NotInGroupError
from sharelyst.core.security import decode_token, get_bearer_token
from sharelyst.db.session import get_db
from sharelyst.services.user_queries import get_user_by_id


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)):
    token = get_bearer_token(request)
    payload = decode_token(token)
    user_id = payload.get("sub")

    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    try:
        user = await get_user_by_id(db, int(user_id))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    return user


async def get_current_group_id(user = Depends(get_current_user)) -> int:
    if user.group_id is None:
        raise NotInGroupError()
    return user.group_id
