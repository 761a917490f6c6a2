# src/modules/subjects/subject_registry.py
"""
Subject registry: who teaches and who is enrolled in a subject.

The discussion service only talks to the abstract interface, so it does not
depend on how teacher assignments are modeled.
"""
from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from fastapi import Depends
from sqlalchemy import and_
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.models.models import Subject, SubjectStudent, SubjectTeacher


class SubjectRegistry(ABC):
    """Abstract lookup for subjects and their memberships."""

    @abstractmethod
    async def get_subject(self, subject_id: UUID) -> Optional[Subject]:
        """Return the subject, or None if it does not exist."""

    @abstractmethod
    async def is_assigned_teacher(self, subject: Subject, user_id: UUID) -> bool:
        """True if the user is an authorized teacher for the subject."""

    @abstractmethod
    async def is_enrolled_student(self, subject: Subject, user_id: UUID) -> bool:
        """True if the user is enrolled in the subject."""


class SqlSubjectRegistry(SubjectRegistry):
    """Registry backed by the subject_teachers / subject_students tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_subject(self, subject_id: UUID) -> Optional[Subject]:
        result = await self.db.execute(select(Subject).where(Subject.id == subject_id))
        return result.scalars().first()

    async def is_assigned_teacher(self, subject: Subject, user_id: UUID) -> bool:
        # Any quarter assignment grants access to the subject's discussions.
        result = await self.db.execute(
            select(SubjectTeacher.id).where(
                and_(SubjectTeacher.subject_id == subject.id, SubjectTeacher.teacher_id == user_id)
            ).limit(1)
        )
        return result.first() is not None

    async def is_enrolled_student(self, subject: Subject, user_id: UUID) -> bool:
        result = await self.db.execute(
            select(SubjectStudent.student_id).where(
                and_(SubjectStudent.subject_id == subject.id, SubjectStudent.student_id == user_id)
            )
        )
        return result.first() is not None


def get_subject_registry(db: AsyncSession = Depends(get_db_session)) -> SubjectRegistry:
    """Dependency providing the registry bound to the request's session."""
    return SqlSubjectRegistry(db)
