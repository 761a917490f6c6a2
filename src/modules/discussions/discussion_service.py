# src/discussions/discussion_service.py

import logging
from typing import Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from src.common.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from src.common.utils.global_messages import GlobalMessages
from src.models.models import Discussion, ModerationTargetType, Subject, User
from src.modules.discussions import discussion_tree as tree
from src.modules.discussions import schemas
from src.modules.discussions.discussion_policy import (
    DiscussionOperation as Op,
    check_access,
    needs_subject,
)
from src.modules.moderation import moderation_service
from src.modules.subjects.subject_registry import SubjectRegistry
from src.modules.user import user_service
from src.modules.user.schemas import UserSummary

logger = logging.getLogger(__name__)

Log = Union[logging.Logger, logging.LoggerAdapter]

# --- Lookups and validation ---

def _require_text(value: Optional[str], message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidArgumentError(message)
    return text

async def get_discussion_by_id(discussion_id: UUID, db: AsyncSession) -> Optional[Discussion]:
    stmt = select(Discussion).where(Discussion.id == discussion_id)
    result = await db.execute(stmt)
    return result.scalars().first()

async def _get_discussion_or_404(discussion_id: UUID, db: AsyncSession) -> Discussion:
    discussion = await get_discussion_by_id(discussion_id, db)
    if not discussion:
        raise NotFoundError(GlobalMessages.DISCUSSION_NOT_FOUND)
    return discussion

async def _get_subject_or_404(subject_id: UUID, registry: SubjectRegistry) -> Subject:
    subject = await registry.get_subject(subject_id)
    if not subject:
        raise NotFoundError(GlobalMessages.SUBJECT_NOT_FOUND)
    return subject

def _require_comment(comments: List[tree.CommentNode], comment_id: UUID) -> tree.CommentNode:
    comment = tree.find_comment(comments, comment_id)
    if comment is None:
        raise NotFoundError(GlobalMessages.COMMENT_NOT_FOUND)
    return comment

def _require_reply(comment: tree.CommentNode, reply_id: UUID, message: str = GlobalMessages.REPLY_NOT_FOUND) -> tree.ReplyLocation:
    location = tree.find_reply(comment, reply_id)
    if location is None:
        raise NotFoundError(message)
    return location

async def _authorize(
    operation: Op,
    current_user: User,
    registry: SubjectRegistry,
    discussion: Discussion,
    **context,
) -> None:
    subject = None
    if needs_subject(operation):
        subject = await registry.get_subject(discussion.subject_id)
    await check_access(operation, current_user, registry, subject=subject, discussion=discussion, **context)

# --- Persistence ---

async def _commit(db: AsyncSession, log: Log, action: str) -> None:
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        log.warning(f"Concurrent modification detected during {action}")
        raise ConflictError(GlobalMessages.CONCURRENT_MODIFICATION)

async def _save_tree(discussion: Discussion, comments: List[tree.CommentNode], db: AsyncSession, log: Log, action: str) -> None:
    """
    Write the whole comment tree back in one UPDATE of the discussion row.
    """
    discussion.comments = tree.dump_comments(comments)
    flag_modified(discussion, "comments")
    db.add(discussion)
    await _commit(db, log, action)
    await db.refresh(discussion)

# --- Response building ---

def _summary(users: Dict[UUID, User], user_id: Optional[UUID]) -> Optional[UserSummary]:
    user = users.get(user_id) if user_id else None
    return UserSummary.model_validate(user) if user else None

def _reply_response(node: tree.ReplyNode, users: Dict[UUID, User]) -> schemas.ReplyResponse:
    return schemas.ReplyResponse(
        **node.model_dump(exclude={"replies"}),
        author=_summary(users, node.author_id),
        reply_to=_summary(users, node.reply_to_id),
        hidden_by=_summary(users, node.hidden_by_id),
        replies=[_reply_response(child, users) for child in node.replies],
    )

def _comment_response(node: tree.CommentNode, users: Dict[UUID, User]) -> schemas.CommentResponse:
    return schemas.CommentResponse(
        **node.model_dump(exclude={"replies"}),
        author=_summary(users, node.author_id),
        hidden_by=_summary(users, node.hidden_by_id),
        replies=[_reply_response(child, users) for child in node.replies],
    )

async def build_discussion_responses(discussions: List[Discussion], db: AsyncSession) -> List[schemas.DiscussionResponse]:
    """
    Render discussions with every referenced user resolved in one query.
    """
    loaded = [(discussion, tree.load_comments(discussion.comments)) for discussion in discussions]
    user_ids = set()
    for discussion, comments in loaded:
        user_ids.add(discussion.author_id)
        user_ids |= tree.referenced_user_ids(comments)
    users = await user_service.get_users_by_ids(user_ids, db)

    return [
        schemas.DiscussionResponse(
            id=discussion.id,
            subject_id=discussion.subject_id,
            author_id=discussion.author_id,
            author=_summary(users, discussion.author_id),
            title=discussion.title,
            content=discussion.content,
            is_edited=discussion.is_edited,
            comments=[_comment_response(comment, users) for comment in comments],
            created_at=discussion.created_at,
            updated_at=discussion.updated_at,
        )
        for discussion, comments in loaded
    ]

async def build_discussion_response(discussion: Discussion, db: AsyncSession) -> schemas.DiscussionResponse:
    responses = await build_discussion_responses([discussion], db)
    return responses[0]

# --- Discussions ---

async def create_discussion(
    subject_id: UUID,
    discussion_data: dict,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> schemas.DiscussionResponse:
    """
    Create a new discussion for the given subject by the current user.

    Only the subject's assigned teacher or an admin may start a discussion.
    """
    title = _require_text(discussion_data.get("title"), GlobalMessages.DISCUSSION_TITLE_CONTENT_REQUIRED)
    content = _require_text(discussion_data.get("content"), GlobalMessages.DISCUSSION_TITLE_CONTENT_REQUIRED)

    subject = await _get_subject_or_404(subject_id, registry)
    await check_access(Op.CREATE_DISCUSSION, current_user, registry, subject=subject)

    new_discussion = Discussion(
        subject_id=subject.id,
        author_id=current_user.id,
        title=title,
        content=content,
        comments=[],
    )
    db.add(new_discussion)
    await db.commit()
    await db.refresh(new_discussion)
    log.info(f"Created discussion {new_discussion.id} in subject {subject.id}")
    return await build_discussion_response(new_discussion, db)

async def get_discussions_for_subject(
    subject_id: UUID,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry
) -> List[schemas.DiscussionResponse]:
    """
    Retrieve all discussions for a subject, newest first.
    """
    subject = await _get_subject_or_404(subject_id, registry)
    await check_access(Op.LIST_DISCUSSIONS, current_user, registry, subject=subject)

    stmt = (
        select(Discussion)
        .where(Discussion.subject_id == subject.id)
        .order_by(Discussion.created_at.desc())
    )
    result = await db.execute(stmt)
    discussions = result.scalars().all()
    return await build_discussion_responses(list(discussions), db)

async def get_discussion(
    discussion_id: UUID,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry
) -> schemas.DiscussionResponse:
    discussion = await _get_discussion_or_404(discussion_id, db)
    await _authorize(Op.VIEW_DISCUSSION, current_user, registry, discussion)
    return await build_discussion_response(discussion, db)

async def update_discussion(
    discussion_id: UUID,
    update_data: dict,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> schemas.DiscussionResponse:
    """
    Update a discussion's title and/or content.

    Only fields that are supplied are touched. The discussion is marked as
    edited when at least one of them actually changes.
    """
    title = update_data.get("title")
    content = update_data.get("content")
    if title is not None:
        title = _require_text(title, GlobalMessages.DISCUSSION_FIELD_EMPTY)
    if content is not None:
        content = _require_text(content, GlobalMessages.DISCUSSION_FIELD_EMPTY)

    discussion = await _get_discussion_or_404(discussion_id, db)
    await _authorize(Op.UPDATE_DISCUSSION, current_user, registry, discussion)

    changed = False
    if title is not None and title != discussion.title:
        discussion.title = title
        changed = True
    if content is not None and content != discussion.content:
        discussion.content = content
        changed = True

    if changed:
        discussion.is_edited = True
        db.add(discussion)
        await _commit(db, log, "update_discussion")
        await db.refresh(discussion)
        log.info(f"Updated discussion {discussion.id}")
    return await build_discussion_response(discussion, db)

async def delete_discussion(
    discussion_id: UUID,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> None:
    """
    Delete a discussion together with all of its comments and replies.

    The comment tree lives inside the discussion row, so removing the row
    detaches it from the subject and drops the whole tree in one statement.
    """
    discussion = await _get_discussion_or_404(discussion_id, db)
    await _authorize(Op.DELETE_DISCUSSION, current_user, registry, discussion)

    subject_id = discussion.subject_id
    await db.delete(discussion)
    await _commit(db, log, "delete_discussion")
    log.info(f"Deleted discussion {discussion_id} from subject {subject_id}")

# --- Comments ---

async def add_comment(
    discussion_id: UUID,
    content: Optional[str],
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> schemas.DiscussionResponse:
    text = _require_text(content, GlobalMessages.COMMENT_CONTENT_REQUIRED)
    discussion = await _get_discussion_or_404(discussion_id, db)
    await _authorize(Op.ADD_COMMENT, current_user, registry, discussion)

    comments = tree.load_comments(discussion.comments)
    comment = tree.add_comment(comments, current_user.id, text)
    await _save_tree(discussion, comments, db, log, "add_comment")
    log.info(f"Added comment {comment.id} to discussion {discussion.id}")
    return await build_discussion_response(discussion, db)

async def update_comment(
    discussion_id: UUID,
    comment_id: UUID,
    content: Optional[str],
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> schemas.DiscussionResponse:
    text = _require_text(content, GlobalMessages.COMMENT_CONTENT_REQUIRED)
    discussion = await _get_discussion_or_404(discussion_id, db)
    comments = tree.load_comments(discussion.comments)
    comment = _require_comment(comments, comment_id)
    await _authorize(Op.UPDATE_COMMENT, current_user, registry, discussion, comment=comment)

    if tree.edit_content(comment, text):
        await _save_tree(discussion, comments, db, log, "update_comment")
        log.info(f"Updated comment {comment.id} in discussion {discussion.id}")
    return await build_discussion_response(discussion, db)

async def delete_comment(
    discussion_id: UUID,
    comment_id: UUID,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> schemas.DiscussionResponse:
    discussion = await _get_discussion_or_404(discussion_id, db)
    comments = tree.load_comments(discussion.comments)
    comment = _require_comment(comments, comment_id)
    await _authorize(Op.DELETE_COMMENT, current_user, registry, discussion, comment=comment)

    tree.remove_comment(comments, comment.id)
    await _save_tree(discussion, comments, db, log, "delete_comment")
    log.info(
        f"Deleted comment {comment.id} ({tree.count_subtree(comment) - 1} nested replies) "
        f"from discussion {discussion.id}"
    )
    return await build_discussion_response(discussion, db)

async def toggle_hide_comment(
    discussion_id: UUID,
    comment_id: UUID,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> schemas.DiscussionResponse:
    """
    Hide a visible comment or unhide a hidden one (admin moderation).
    """
    discussion = await _get_discussion_or_404(discussion_id, db)
    comments = tree.load_comments(discussion.comments)
    comment = _require_comment(comments, comment_id)
    await _authorize(Op.HIDE_COMMENT, current_user, registry, discussion, comment=comment)

    hidden = tree.toggle_hidden(comment, current_user.id)
    moderation_service.record_moderation_action(
        discussion.id, ModerationTargetType.COMMENT, comment.id, hidden, current_user.id, db
    )
    await _save_tree(discussion, comments, db, log, "toggle_hide_comment")
    log.info(f"{'Hid' if hidden else 'Unhid'} comment {comment.id} in discussion {discussion.id}")
    return await build_discussion_response(discussion, db)

# --- Replies ---

async def add_reply(
    discussion_id: UUID,
    comment_id: UUID,
    reply_data: dict,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> schemas.DiscussionResponse:
    """
    Add a reply to a comment, or to an existing reply when
    ``parent_reply_id`` is given. Chains deeper than
    ``MAX_REPLY_DEPTH`` are rejected as invalid arguments.
    """
    text = _require_text(reply_data.get("content"), GlobalMessages.REPLY_CONTENT_REQUIRED)
    discussion = await _get_discussion_or_404(discussion_id, db)
    comments = tree.load_comments(discussion.comments)
    comment = _require_comment(comments, comment_id)

    parent = None
    if reply_data.get("parent_reply_id") is not None:
        location = _require_reply(comment, reply_data["parent_reply_id"], GlobalMessages.PARENT_REPLY_NOT_FOUND)
        if location.depth >= tree.MAX_REPLY_DEPTH:
            raise InvalidArgumentError(GlobalMessages.REPLY_TOO_DEEP.format(max_depth=tree.MAX_REPLY_DEPTH))
        parent = location.node

    await _authorize(Op.ADD_REPLY, current_user, registry, discussion, comment=comment)

    reply = tree.add_reply(
        comments,
        comment,
        current_user.id,
        text,
        reply_to_id=reply_data.get("reply_to_user_id"),
        parent=parent,
    )
    await _save_tree(discussion, comments, db, log, "add_reply")
    log.info(f"Added reply {reply.id} under {parent.id if parent else comment.id} in discussion {discussion.id}")
    return await build_discussion_response(discussion, db)

async def update_reply(
    discussion_id: UUID,
    comment_id: UUID,
    reply_id: UUID,
    content: Optional[str],
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> schemas.DiscussionResponse:
    text = _require_text(content, GlobalMessages.REPLY_CONTENT_REQUIRED)
    discussion = await _get_discussion_or_404(discussion_id, db)
    comments = tree.load_comments(discussion.comments)
    comment = _require_comment(comments, comment_id)
    reply = _require_reply(comment, reply_id).node
    await _authorize(Op.UPDATE_REPLY, current_user, registry, discussion, comment=comment, reply=reply)

    if tree.edit_content(reply, text):
        await _save_tree(discussion, comments, db, log, "update_reply")
        log.info(f"Updated reply {reply.id} in discussion {discussion.id}")
    return await build_discussion_response(discussion, db)

async def delete_reply(
    discussion_id: UUID,
    comment_id: UUID,
    reply_id: UUID,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> schemas.DiscussionResponse:
    """
    Delete a reply found at any depth, along with everything nested under it.
    """
    discussion = await _get_discussion_or_404(discussion_id, db)
    comments = tree.load_comments(discussion.comments)
    comment = _require_comment(comments, comment_id)
    reply = _require_reply(comment, reply_id).node
    await _authorize(Op.DELETE_REPLY, current_user, registry, discussion, comment=comment, reply=reply)

    removed = tree.remove_reply(comment, reply.id)
    await _save_tree(discussion, comments, db, log, "delete_reply")
    log.info(f"Deleted reply {reply.id} ({tree.count_subtree(removed)} nodes) from discussion {discussion.id}")
    return await build_discussion_response(discussion, db)

async def toggle_hide_reply(
    discussion_id: UUID,
    comment_id: UUID,
    reply_id: UUID,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry,
    log: Log = logger
) -> schemas.DiscussionResponse:
    discussion = await _get_discussion_or_404(discussion_id, db)
    comments = tree.load_comments(discussion.comments)
    comment = _require_comment(comments, comment_id)
    reply = _require_reply(comment, reply_id).node
    await _authorize(Op.HIDE_REPLY, current_user, registry, discussion, comment=comment, reply=reply)

    hidden = tree.toggle_hidden(reply, current_user.id)
    moderation_service.record_moderation_action(
        discussion.id, ModerationTargetType.REPLY, reply.id, hidden, current_user.id, db
    )
    await _save_tree(discussion, comments, db, log, "toggle_hide_reply")
    log.info(f"{'Hid' if hidden else 'Unhid'} reply {reply.id} in discussion {discussion.id}")
    return await build_discussion_response(discussion, db)

# --- Moderation ---

async def get_moderation_log(
    discussion_id: UUID,
    current_user: User,
    db: AsyncSession,
    registry: SubjectRegistry
) -> List[schemas.ModerationActionResponse]:
    """
    Retrieve the hide/unhide history of a discussion (admins only).

    The log is kept after the discussion itself is deleted.
    """
    await check_access(Op.VIEW_MODERATION_LOG, current_user, registry)
    entries = await moderation_service.get_moderation_actions(discussion_id, db)
    users = await user_service.get_users_by_ids({entry.moderator_id for entry in entries}, db)
    return [
        schemas.ModerationActionResponse(
            id=entry.id,
            discussion_id=entry.discussion_id,
            target_type=entry.target_type,
            target_id=entry.target_id,
            action=entry.action,
            moderator_id=entry.moderator_id,
            moderator=_summary(users, entry.moderator_id),
            created_at=entry.created_at,
        )
        for entry in entries
    ]
