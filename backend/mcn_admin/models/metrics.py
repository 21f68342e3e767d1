"""
MCN Admin Dashboard - Daily Channel Metrics
===========================================
Fact table: one row per (channel, calendar date), upserted by the external
YouTube Analytics sync job. Interactive requests never write here.
"""

from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    UniqueConstraint,
)

from mcn_admin.core.database import Base


class ChannelMetricDaily(Base):
    __tablename__ = "channel_metrics_daily"

    id = Column(Integer, primary_key=True, autoincrement=True)
    channel_id = Column(Integer, ForeignKey("channels.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    views = Column(Integer, nullable=False, default=0)
    watch_time_minutes = Column(Integer, nullable=False, default=0)
    revenue = Column(Numeric(18, 4), nullable=False, default=0)
    subs_gained = Column(Integer, nullable=False, default=0)
    subs_lost = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("channel_id", "date", name="uq_channel_metrics_daily_channel_date"),
        Index("ix_channel_metrics_daily_date", "date"),
    )
