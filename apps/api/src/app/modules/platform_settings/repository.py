"""
Platform Settings Repository
"""

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from .models import SINGLETON_ID, PlatformSettings


async def get_or_create(db: AsyncSession) -> PlatformSettings:
    """
    Return the settings row, inserting defaults on first access.

    The insert is ON CONFLICT DO NOTHING so concurrent first readers
    cannot create a second row.
    """
    settings_row = await db.get(PlatformSettings, SINGLETON_ID)
    if settings_row is not None:
        return settings_row

    await db.execute(
        insert(PlatformSettings).values(id=SINGLETON_ID).on_conflict_do_nothing(
            index_elements=[PlatformSettings.id]
        )
    )
    await db.flush()
    return await db.get(PlatformSettings, SINGLETON_ID, populate_existing=True)


async def update(db: AsyncSession, changes: dict, updated_by: str | None) -> PlatformSettings:
    settings_row = await get_or_create(db)
    for field, value in changes.items():
        setattr(settings_row, field, value)
    settings_row.updated_by = updated_by
    await db.commit()
    await db.refresh(settings_row)
    return settings_row
