"""
Platform Settings Models

Single-row table of runtime toggles that admins change from the
dashboard without a redeploy.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

SINGLETON_ID = 1

MIN_FILE_SIZE = 1024 * 1024  # 1MB
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB


class PlatformSettings(Base):
    """The platform settings singleton (id is always 1)."""

    __tablename__ = "platform_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SINGLETON_ID)

    platform_name: Mapped[str] = mapped_column(String(100), nullable=False, default="OneAU")
    allow_registration: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    require_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    maintenance_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_file_size: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=DEFAULT_MAX_FILE_SIZE
    )

    updated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(f"id = {SINGLETON_ID}", name="ck_platform_settings_singleton"),
        CheckConstraint(
            f"max_file_size BETWEEN {MIN_FILE_SIZE} AND {MAX_FILE_SIZE}",
            name="ck_platform_settings_max_file_size",
        ),
    )
