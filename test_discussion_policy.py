from itertools import combinations
from uuid import uuid4

import pytest

from src.common.exceptions import ForbiddenError
from src.models.models import Discussion, Subject, User, UserRole
from src.modules.discussions.discussion_policy import (
    DENIAL_MESSAGES,
    POLICY,
    DiscussionOperation as Op,
    Grant,
    authorize,
    check_access,
    needs_subject,
    resolve_grants,
)
from src.modules.discussions.discussion_tree import CommentNode, ReplyNode
from src.modules.subjects.subject_registry import SubjectRegistry

EXPECTED = {
    Op.CREATE_DISCUSSION: {Grant.ADMIN, Grant.ASSIGNED_TEACHER},
    Op.LIST_DISCUSSIONS: {Grant.ADMIN, Grant.ASSIGNED_TEACHER, Grant.ENROLLED_STUDENT},
    Op.VIEW_DISCUSSION: {Grant.ADMIN, Grant.ASSIGNED_TEACHER, Grant.ENROLLED_STUDENT},
    Op.UPDATE_DISCUSSION: {Grant.ADMIN, Grant.ASSIGNED_TEACHER, Grant.DISCUSSION_AUTHOR},
    Op.DELETE_DISCUSSION: {Grant.ADMIN, Grant.ASSIGNED_TEACHER, Grant.DISCUSSION_AUTHOR},
    Op.ADD_COMMENT: {Grant.ADMIN, Grant.ASSIGNED_TEACHER, Grant.ENROLLED_STUDENT},
    Op.UPDATE_COMMENT: {Grant.COMMENT_AUTHOR},
    Op.DELETE_COMMENT: {Grant.COMMENT_AUTHOR, Grant.DISCUSSION_AUTHOR, Grant.ASSIGNED_TEACHER, Grant.ADMIN},
    Op.HIDE_COMMENT: {Grant.ADMIN},
    Op.ADD_REPLY: {Grant.ADMIN, Grant.ASSIGNED_TEACHER, Grant.ENROLLED_STUDENT},
    Op.UPDATE_REPLY: {Grant.REPLY_AUTHOR},
    Op.DELETE_REPLY: {Grant.REPLY_AUTHOR, Grant.COMMENT_AUTHOR, Grant.DISCUSSION_AUTHOR, Grant.ADMIN},
    Op.HIDE_REPLY: {Grant.ADMIN},
    Op.VIEW_MODERATION_LOG: {Grant.ADMIN},
}


def all_grant_sets():
    grants = list(Grant)
    for size in range(len(grants) + 1):
        for combo in combinations(grants, size):
            yield set(combo)


class FakeRegistry(SubjectRegistry):
    """In-memory registry that records which membership checks were made."""

    def __init__(self, teachers=(), students=()):
        self.teachers = set(teachers)
        self.students = set(students)
        self.calls = []

    async def get_subject(self, subject_id):
        self.calls.append(("get_subject", subject_id))
        return None

    async def is_assigned_teacher(self, subject, user_id):
        self.calls.append(("is_assigned_teacher", user_id))
        return user_id in self.teachers

    async def is_enrolled_student(self, subject, user_id):
        self.calls.append(("is_enrolled_student", user_id))
        return user_id in self.students


def user(role: UserRole) -> User:
    return User(id=uuid4(), username=f"{role.value}-{uuid4().hex[:6]}", role=role)


def test_policy_table_is_pinned():
    assert set(POLICY) == set(Op)
    assert {op: set(grants) for op, grants in POLICY.items()} == EXPECTED
    assert set(DENIAL_MESSAGES) == set(Op)


@pytest.mark.parametrize("operation", list(Op))
def test_authorize_allows_exactly_the_listed_grants(operation):
    checked = 0
    for grants in all_grant_sets():
        checked += 1
        if grants & EXPECTED[operation]:
            authorize(operation, grants)
        else:
            with pytest.raises(ForbiddenError) as excinfo:
                authorize(operation, grants)
            assert excinfo.value.message == DENIAL_MESSAGES[operation]
            assert excinfo.value.kind == "forbidden"
    assert checked == 64


def test_needs_subject_only_for_membership_rules():
    assert needs_subject(Op.VIEW_DISCUSSION)
    assert needs_subject(Op.DELETE_COMMENT)
    assert not needs_subject(Op.UPDATE_COMMENT)
    assert not needs_subject(Op.DELETE_REPLY)
    assert not needs_subject(Op.HIDE_REPLY)
    assert not needs_subject(Op.VIEW_MODERATION_LOG)


async def test_membership_requires_matching_role():
    subject = Subject(id=uuid4(), subject_name="Math 8")
    teacher = user(UserRole.TEACHER)
    student = user(UserRole.STUDENT)
    # Listed in both tables; only the role-appropriate grant counts.
    registry = FakeRegistry(teachers={teacher.id, student.id}, students={teacher.id, student.id})

    teacher_grants = await resolve_grants(Op.VIEW_DISCUSSION, teacher, registry, subject=subject)
    student_grants = await resolve_grants(Op.VIEW_DISCUSSION, student, registry, subject=subject)

    assert teacher_grants == {Grant.ASSIGNED_TEACHER}
    assert student_grants == {Grant.ENROLLED_STUDENT}


async def test_unassigned_teacher_and_unenrolled_student_get_nothing():
    subject = Subject(id=uuid4(), subject_name="Math 8")
    registry = FakeRegistry()

    for role in (UserRole.TEACHER, UserRole.STUDENT):
        with pytest.raises(ForbiddenError):
            await check_access(Op.VIEW_DISCUSSION, user(role), registry, subject=subject)


async def test_admin_is_granted_without_membership():
    registry = FakeRegistry()
    admin = user(UserRole.ADMIN)

    grants = await check_access(Op.CREATE_DISCUSSION, admin, registry, subject=Subject(id=uuid4()))

    assert Grant.ADMIN in grants


async def test_author_grants_follow_the_node_authors():
    author = user(UserRole.STUDENT)
    other = user(UserRole.STUDENT)
    discussion = Discussion(id=uuid4(), author_id=other.id)
    comment = CommentNode(id=uuid4(), author_id=author.id, content="mine")
    reply = ReplyNode(id=uuid4(), author_id=other.id, content="theirs")
    registry = FakeRegistry()

    grants = await resolve_grants(
        Op.DELETE_REPLY, author, registry, discussion=discussion, comment=comment, reply=reply
    )

    assert grants == {Grant.COMMENT_AUTHOR}
    with pytest.raises(ForbiddenError):
        await check_access(Op.UPDATE_REPLY, author, registry, comment=comment, reply=reply)


async def test_author_only_rules_never_consult_the_registry():
    author = user(UserRole.TEACHER)
    comment = CommentNode(id=uuid4(), author_id=author.id, content="mine")
    registry = FakeRegistry(teachers={author.id})

    await check_access(Op.UPDATE_COMMENT, author, registry, subject=Subject(id=uuid4()), comment=comment)

    assert registry.calls == []


async def test_assigned_teacher_cannot_delete_a_students_reply():
    subject = Subject(id=uuid4())
    teacher = user(UserRole.TEACHER)
    student = user(UserRole.STUDENT)
    discussion = Discussion(id=uuid4(), author_id=uuid4())
    comment = CommentNode(id=uuid4(), author_id=student.id, content="question")
    reply = ReplyNode(id=uuid4(), author_id=student.id, content="follow-up")
    registry = FakeRegistry(teachers={teacher.id})

    with pytest.raises(ForbiddenError):
        await check_access(
            Op.DELETE_REPLY, teacher, registry,
            subject=subject, discussion=discussion, comment=comment, reply=reply,
        )
    await check_access(
        Op.DELETE_COMMENT, teacher, registry,
        subject=subject, discussion=discussion, comment=comment,
    )
