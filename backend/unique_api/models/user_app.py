from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_id


class UserApp(Base):
    """Ownership link between a user and an app."""

    __tablename__ = "user_apps"
    __table_args__ = (
        UniqueConstraint("user_id", "app_id", name="uq_user_apps_user_id_app_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    app_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("apps.id", ondelete="CASCADE"), nullable=False, index=True
    )
