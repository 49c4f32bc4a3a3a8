"""
Student Repository

Database operations for student accounts.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Student, StudentStatus


async def get_by_id(db: AsyncSession, student_id: int, *, for_update: bool = False) -> Student | None:
    """
    Get student by integer id.

    With for_update, the row is locked until the transaction ends so
    followed_orgs / joined_events edits serialize per student.
    """
    stmt = select(Student).where(Student.id == student_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_by_email(db: AsyncSession, email: str) -> Student | None:
    result = await db.execute(select(Student).where(Student.email == email.lower()))
    return result.scalar_one_or_none()


async def get_active_follower_ids(db: AsyncSession, organization_id: int) -> list[int]:
    """Ids of active students whose followed_orgs contains the organization."""
    result = await db.execute(
        select(Student.id).where(
            Student.followed_orgs.contains([organization_id]),
            Student.status == StudentStatus.ACTIVE,
        )
    )
    return list(result.scalars().all())


async def set_status(db: AsyncSession, student: Student, status: StudentStatus) -> Student:
    student.status = status
    await db.flush()
    return student
