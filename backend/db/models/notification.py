"""Notification model: user-facing messages written by notification steps."""

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import BaseModel


class Notification(BaseModel):
    """Notification addressed to a single user."""

    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(nullable=False, index=True)
    type: Mapped[str] = mapped_column(default="notification")
    title: Mapped[str] = mapped_column(nullable=False, default="")
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_read: Mapped[bool] = mapped_column(default=False, index=True)
