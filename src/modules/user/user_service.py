# src/user/user_service.py

from typing import Dict, Iterable
from uuid import UUID
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.models import User

async def get_users_by_ids(user_ids: Iterable[UUID], db: AsyncSession) -> Dict[UUID, User]:
    """
    Resolve a set of user ids to User rows in a single query.

    Ids with no matching user are simply absent from the returned mapping,
    so callers can render a weak reference to a deleted account as unknown.
    """
    ids = {user_id for user_id in user_ids if user_id is not None}
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {user.id: user for user in result.scalars().all()}
