# src/modules/moderation/moderation_service.py

from typing import List
from uuid import UUID
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.models import ModerationAction, ModerationActionType, ModerationTargetType

def record_moderation_action(
    discussion_id: UUID,
    target_type: ModerationTargetType,
    target_id: UUID,
    hidden: bool,
    moderator_id: UUID,
    db: AsyncSession
) -> ModerationAction:
    """
    Add a hide/unhide entry to the session.

    The caller commits it together with the discussion change, so the log and
    the tree never disagree.
    """
    entry = ModerationAction(
        discussion_id=discussion_id,
        target_type=target_type,
        target_id=target_id,
        action=ModerationActionType.HIDE if hidden else ModerationActionType.UNHIDE,
        moderator_id=moderator_id,
    )
    db.add(entry)
    return entry

async def get_moderation_actions(discussion_id: UUID, db: AsyncSession) -> List[ModerationAction]:
    """
    Retrieve the moderation history of a discussion, newest first.
    """
    stmt = (
        select(ModerationAction)
        .where(ModerationAction.discussion_id == discussion_id)
        .order_by(ModerationAction.created_at.desc())
    )
    result = await db.execute(stmt)
    return result.scalars().all()
