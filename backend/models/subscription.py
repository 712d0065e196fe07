"""Channel subscription relationship model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String, func
from sqlmodel import Field, SQLModel


class Subscription(SQLModel, table=True):
    """Represents a user subscribed to another user's channel."""

    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint(
            "subscriber_id <> channel_id",
            name="ck_subscriptions_no_self_subscription",
        ),
        Index("ix_subscriptions_channel_subscriber", "channel_id", "subscriber_id"),
    )

    subscriber_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        )
    )
    channel_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        )
    )
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )
    )
