from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_id


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    custom_id: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(64))
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    external_email: Mapped[str] = mapped_column(String(255), nullable=False)
    birthdate: Mapped[date | None] = mapped_column(Date)
    email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="0"
    )
    period: Mapped[str | None] = mapped_column(String(32))
    joined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_system: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="0"
    )
    is_enable: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="0"
    )
    is_suspended: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="0"
    )
    suspended_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    suspended_reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
