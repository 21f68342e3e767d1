"""
MCN Admin Dashboard - Channel Models
====================================
Tracked YouTube channels and their staff associations.
"""

import enum

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)

from mcn_admin.core.database import Base


class ChannelStatus(str, enum.Enum):
    active = "active"
    deleted = "deleted"


class ChannelStaffRole(str, enum.Enum):
    manager = "manager"
    editor = "editor"
    viewer = "viewer"


class Channel(Base):
    __tablename__ = "channels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    youtube_channel_id = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    status = Column(
        Enum(ChannelStatus, name="channel_status", native_enum=False, length=16),
        nullable=False,
        default=ChannelStatus.active,
        index=True,
    )
    avatar_url = Column(String(1024), nullable=True)
    subscriber_count = Column(BigInteger, nullable=True)

    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True)
    network_id = Column(Integer, ForeignKey("networks.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Channel {self.youtube_channel_id} ({self.status})>"


class StaffChannel(Base):
    """Staff <-> channel association. ``role='manager'`` marks the channel manager."""

    __tablename__ = "staff_channels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    staff_id = Column(Integer, ForeignKey("staff_users.id", ondelete="CASCADE"), nullable=False, index=True)
    channel_id = Column(Integer, ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(32), nullable=False, default=ChannelStaffRole.manager.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("staff_id", "channel_id", "role", name="uq_staff_channels_staff_channel_role"),
        Index("ix_staff_channels_channel_role", "channel_id", "role"),
    )
