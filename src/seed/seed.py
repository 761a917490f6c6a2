import asyncio
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from src.auth.auth_service import create_token_for_user
from src.common.database.database import async_session, connect_to_db
from src.models.models import Subject, SubjectStudent, SubjectTeacher, User, UserRole

logger = logging.getLogger(__name__)

users_data = [
    {"username": "admin", "email": "admin@school.test", "first_name": "Ada", "last_name": "Admin", "role": UserRole.ADMIN},
    {"username": "mreyes", "email": "mreyes@school.test", "first_name": "Maria", "last_name": "Reyes", "role": UserRole.TEACHER},
    {"username": "jcruz", "email": "jcruz@school.test", "first_name": "Juan", "last_name": "Cruz", "role": UserRole.STUDENT},
    {"username": "asantos", "email": "asantos@school.test", "first_name": "Ana", "last_name": "Santos", "role": UserRole.STUDENT},
]

subject_data = {
    "subject_name": "Science 7",
    "description": "Integrated science for grade 7",
    "grade_level": "Grade 7",
    "school_year": "2024 - 2025",
    "section": "Rizal",
}

async def seed_users(session: AsyncSession) -> dict:
    """
    Create the demo users, reusing any that already exist.
    """
    users = {}
    for data in users_data:
        result = await session.execute(select(User).where(User.username == data["username"]))
        user = result.scalars().first()
        if not user:
            user = User(**data)
            session.add(user)
        users[data["username"]] = user
    await session.flush()
    return users

async def seed_subject(session: AsyncSession, users: dict) -> Subject:
    """
    Create a subject with one assigned teacher and two enrolled students.
    """
    result = await session.execute(select(Subject).where(Subject.subject_name == subject_data["subject_name"]))
    subject = result.scalars().first()
    if subject:
        return subject

    subject = Subject(**subject_data)
    subject.teacher_assignments.append(SubjectTeacher(teacher_id=users["mreyes"].id, quarter="Q1"))
    subject.enrollments.append(SubjectStudent(student_id=users["jcruz"].id))
    subject.enrollments.append(SubjectStudent(student_id=users["asantos"].id))
    session.add(subject)
    return subject

async def seed_all():
    """
    Run all seed functions and print a bearer token for each demo user.
    """
    await connect_to_db()
    async with async_session() as session:
        # Using a transaction block to ensure all seeding operations succeed.
        async with session.begin():
            users = await seed_users(session)
            subject = await seed_subject(session, users)

    logger.info(f"Subject '{subject.subject_name}' id: {subject.id}")
    for username, user in users.items():
        logger.info(f"{username} ({user.role.value}) token: {create_token_for_user(user)}")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed_all())
