# src/modules/discussions/discussion_policy.py
"""
Authorization table for discussion operations.

Each operation lists the relationships (grants) that allow it; a caller is
authorized when it holds at least one of them. Grants are only evaluated when
the operation's rule mentions them, so an operation never pays for registry
lookups it does not need.
"""

import enum
from typing import Dict, FrozenSet, Optional, Set

from src.common.exceptions import ForbiddenError
from src.common.utils.global_messages import GlobalMessages
from src.models.models import Discussion, Subject, User, UserRole
from src.modules.discussions.discussion_tree import CommentNode, ReplyNode
from src.modules.subjects.subject_registry import SubjectRegistry


class Grant(enum.Enum):
    ADMIN = "admin"
    ASSIGNED_TEACHER = "assigned_teacher"
    ENROLLED_STUDENT = "enrolled_student"
    DISCUSSION_AUTHOR = "discussion_author"
    COMMENT_AUTHOR = "comment_author"
    REPLY_AUTHOR = "reply_author"


class DiscussionOperation(enum.Enum):
    CREATE_DISCUSSION = "create_discussion"
    LIST_DISCUSSIONS = "list_discussions"
    VIEW_DISCUSSION = "view_discussion"
    UPDATE_DISCUSSION = "update_discussion"
    DELETE_DISCUSSION = "delete_discussion"
    ADD_COMMENT = "add_comment"
    UPDATE_COMMENT = "update_comment"
    DELETE_COMMENT = "delete_comment"
    HIDE_COMMENT = "hide_comment"
    ADD_REPLY = "add_reply"
    UPDATE_REPLY = "update_reply"
    DELETE_REPLY = "delete_reply"
    HIDE_REPLY = "hide_reply"
    VIEW_MODERATION_LOG = "view_moderation_log"


_MEMBERS = frozenset({Grant.ADMIN, Grant.ASSIGNED_TEACHER, Grant.ENROLLED_STUDENT})
_MANAGERS = frozenset({Grant.ADMIN, Grant.ASSIGNED_TEACHER, Grant.DISCUSSION_AUTHOR})

POLICY: Dict[DiscussionOperation, FrozenSet[Grant]] = {
    DiscussionOperation.CREATE_DISCUSSION: frozenset({Grant.ADMIN, Grant.ASSIGNED_TEACHER}),
    DiscussionOperation.LIST_DISCUSSIONS: _MEMBERS,
    DiscussionOperation.VIEW_DISCUSSION: _MEMBERS,
    DiscussionOperation.UPDATE_DISCUSSION: _MANAGERS,
    DiscussionOperation.DELETE_DISCUSSION: _MANAGERS,
    DiscussionOperation.ADD_COMMENT: _MEMBERS,
    # Editing is reserved to the author of the text.
    DiscussionOperation.UPDATE_COMMENT: frozenset({Grant.COMMENT_AUTHOR}),
    DiscussionOperation.DELETE_COMMENT: frozenset({
        Grant.COMMENT_AUTHOR, Grant.DISCUSSION_AUTHOR, Grant.ASSIGNED_TEACHER, Grant.ADMIN,
    }),
    DiscussionOperation.HIDE_COMMENT: frozenset({Grant.ADMIN}),
    DiscussionOperation.ADD_REPLY: _MEMBERS,
    DiscussionOperation.UPDATE_REPLY: frozenset({Grant.REPLY_AUTHOR}),
    # Teachers cannot delete replies they did not write unless they own the comment or discussion.
    DiscussionOperation.DELETE_REPLY: frozenset({
        Grant.REPLY_AUTHOR, Grant.COMMENT_AUTHOR, Grant.DISCUSSION_AUTHOR, Grant.ADMIN,
    }),
    DiscussionOperation.HIDE_REPLY: frozenset({Grant.ADMIN}),
    DiscussionOperation.VIEW_MODERATION_LOG: frozenset({Grant.ADMIN}),
}

DENIAL_MESSAGES: Dict[DiscussionOperation, str] = {
    DiscussionOperation.CREATE_DISCUSSION: GlobalMessages.NOT_AUTHORIZED_CREATE_DISCUSSION,
    DiscussionOperation.LIST_DISCUSSIONS: GlobalMessages.NOT_AUTHORIZED_VIEW_DISCUSSIONS,
    DiscussionOperation.VIEW_DISCUSSION: GlobalMessages.NOT_AUTHORIZED_VIEW_DISCUSSION,
    DiscussionOperation.UPDATE_DISCUSSION: GlobalMessages.NOT_AUTHORIZED_UPDATE_DISCUSSION,
    DiscussionOperation.DELETE_DISCUSSION: GlobalMessages.NOT_AUTHORIZED_DELETE_DISCUSSION,
    DiscussionOperation.ADD_COMMENT: GlobalMessages.NOT_AUTHORIZED_ADD_COMMENT,
    DiscussionOperation.UPDATE_COMMENT: GlobalMessages.NOT_AUTHORIZED_UPDATE_COMMENT,
    DiscussionOperation.DELETE_COMMENT: GlobalMessages.NOT_AUTHORIZED_DELETE_COMMENT,
    DiscussionOperation.HIDE_COMMENT: GlobalMessages.NOT_AUTHORIZED_HIDE_COMMENT,
    DiscussionOperation.ADD_REPLY: GlobalMessages.NOT_AUTHORIZED_ADD_REPLY,
    DiscussionOperation.UPDATE_REPLY: GlobalMessages.NOT_AUTHORIZED_UPDATE_REPLY,
    DiscussionOperation.DELETE_REPLY: GlobalMessages.NOT_AUTHORIZED_DELETE_REPLY,
    DiscussionOperation.HIDE_REPLY: GlobalMessages.NOT_AUTHORIZED_HIDE_REPLY,
    DiscussionOperation.VIEW_MODERATION_LOG: GlobalMessages.NOT_AUTHORIZED_VIEW_MODERATION_LOG,
}


_SUBJECT_GRANTS = frozenset({Grant.ASSIGNED_TEACHER, Grant.ENROLLED_STUDENT})


def is_allowed(operation: DiscussionOperation, grants: Set[Grant]) -> bool:
    return bool(POLICY[operation] & grants)


def needs_subject(operation: DiscussionOperation) -> bool:
    """True if the operation's rule depends on subject membership."""
    return bool(POLICY[operation] & _SUBJECT_GRANTS)


def authorize(operation: DiscussionOperation, grants: Set[Grant]) -> None:
    if not is_allowed(operation, grants):
        raise ForbiddenError(DENIAL_MESSAGES[operation])


async def resolve_grants(
    operation: DiscussionOperation,
    user: User,
    registry: SubjectRegistry,
    subject: Optional[Subject] = None,
    discussion: Optional[Discussion] = None,
    comment: Optional[CommentNode] = None,
    reply: Optional[ReplyNode] = None,
) -> Set[Grant]:
    """
    Evaluate the relationships the caller holds, limited to those the
    operation's rule can use.
    """
    wanted = POLICY[operation]
    grants: Set[Grant] = set()

    if Grant.ADMIN in wanted and user.role == UserRole.ADMIN:
        grants.add(Grant.ADMIN)
    if Grant.DISCUSSION_AUTHOR in wanted and discussion is not None and discussion.author_id == user.id:
        grants.add(Grant.DISCUSSION_AUTHOR)
    if Grant.COMMENT_AUTHOR in wanted and comment is not None and comment.author_id == user.id:
        grants.add(Grant.COMMENT_AUTHOR)
    if Grant.REPLY_AUTHOR in wanted and reply is not None and reply.author_id == user.id:
        grants.add(Grant.REPLY_AUTHOR)

    if subject is not None:
        if (Grant.ASSIGNED_TEACHER in wanted and user.role == UserRole.TEACHER
                and await registry.is_assigned_teacher(subject, user.id)):
            grants.add(Grant.ASSIGNED_TEACHER)
        if (Grant.ENROLLED_STUDENT in wanted and user.role == UserRole.STUDENT
                and await registry.is_enrolled_student(subject, user.id)):
            grants.add(Grant.ENROLLED_STUDENT)

    return grants


async def check_access(operation: DiscussionOperation, user: User, registry: SubjectRegistry, **context) -> Set[Grant]:
    """Resolve the caller's grants and raise ForbiddenError unless the operation is allowed."""
    grants = await resolve_grants(operation, user, registry, **context)
    authorize(operation, grants)
    return grants
