"""Watch history model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func
from sqlmodel import Field, SQLModel


class WatchHistoryEntry(SQLModel, table=True):
    """One viewed video in a user's history; ``id`` order is history order."""

    __tablename__ = "watch_history"
    __table_args__ = (
        Index("ix_watch_history_user_id_id", "user_id", "id"),
    )

    id: int | None = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    user_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    video_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("videos.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    watched_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )
    )
