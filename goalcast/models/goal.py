from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from goalcast.models.base import Base


class Goal(Base):
    __tablename__ = "goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(32))
    duration: Mapped[int] = mapped_column(Integer)
    duration_unit: Mapped[str] = mapped_column(String(16))
    start_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="active", index=True)
    category: Mapped[str] = mapped_column(String(64), default="general")
    visibility: Mapped[str] = mapped_column(String(16), default="public")
    twitter_share: Mapped[bool] = mapped_column(Boolean, default=False)
    linkedin_share: Mapped[bool] = mapped_column(Boolean, default=False)
    bio_update: Mapped[bool] = mapped_column(Boolean, default=False)
    reminder_frequency: Mapped[str] = mapped_column(String(32), default="daily")
    tags_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
