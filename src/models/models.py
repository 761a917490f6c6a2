from datetime import datetime, timezone
from typing import List
import uuid
import enum

from sqlalchemy import (
    JSON, Boolean, Column, ForeignKey, Integer, String, Text, DateTime, Uuid,
    Enum as SAEnum, UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship, Mapped

Base = declarative_base()

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class UserRole(enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(50), nullable=False)
    middle_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=False)
    profile_picture = Column(String(255), nullable=True)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.STUDENT)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, email={self.email}, role={self.role.value})>"

class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    subject_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    grade_level = Column(String(50), nullable=True)
    school_year = Column(String(50), nullable=True)
    section = Column(String(50), nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), default=utcnow, onupdate=utcnow)

    # Teacher assignments (one row per teacher per quarter)
    teacher_assignments: Mapped[List["SubjectTeacher"]] = relationship(
        "SubjectTeacher",
        backref="subject",
        cascade="all, delete-orphan"
    )

    # Enrolled students
    enrollments: Mapped[List["SubjectStudent"]] = relationship(
        "SubjectStudent",
        backref="subject",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Subject(id={self.id}, subject_name={self.subject_name}, section={self.section})>"

class SubjectTeacher(Base):
    __tablename__ = "subject_teachers"

    __table_args__ = (
        UniqueConstraint('subject_id', 'teacher_id', 'quarter', name='unique_subject_teacher_quarter'),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    # Optional grading quarter ("Q1".."Q4"); None means the whole school year.
    quarter = Column(String(10), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), default=utcnow)

    def __repr__(self):
        return f"<SubjectTeacher(subject_id={self.subject_id}, teacher_id={self.teacher_id}, quarter={self.quarter})>"

class SubjectStudent(Base):
    __tablename__ = "subject_students"

    # Composite primary key: subject_id and student_id together uniquely identify an enrollment.
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), primary_key=True)
    enrolled_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), default=utcnow)

    def __repr__(self):
        return f"<SubjectStudent(subject_id={self.subject_id}, student_id={self.student_id})>"

class Discussion(Base):
    __tablename__ = "discussions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    # The whole comment/reply tree, stored as one JSON document.
    comments = Column(JSON, nullable=False, default=list)
    is_edited = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), default=utcnow, onupdate=utcnow)

    # Optimistic concurrency: each flush checks and bumps the version.
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Discussion(id={self.id}, title={self.title}, subject_id={self.subject_id}, author_id={self.author_id})>"

class ModerationTargetType(enum.Enum):
    COMMENT = "comment"
    REPLY = "reply"

class ModerationActionType(enum.Enum):
    HIDE = "hide"
    UNHIDE = "unhide"

class ModerationAction(Base):
    __tablename__ = "moderation_actions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    # Weak reference: the log outlives the discussion it describes.
    discussion_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    target_type = Column(SAEnum(ModerationTargetType), nullable=False)
    target_id = Column(Uuid(as_uuid=True), nullable=False)
    action = Column(SAEnum(ModerationActionType), nullable=False)
    moderator_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), default=utcnow)

    def __repr__(self):
        return (f"<ModerationAction(id={self.id}, discussion_id={self.discussion_id}, "
                f"target={self.target_type.value}:{self.target_id}, action={self.action.value})>")
