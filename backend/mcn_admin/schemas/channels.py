"""Channel and staff administration schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from mcn_admin.models.channel import ChannelStaffRole, ChannelStatus
from mcn_admin.models.staff import StaffRole


class ChannelListItem(BaseModel):
    id: int
    name: str
    youtube_channel_id: str
    network_id: Optional[int] = None
    team_id: Optional[int] = None
    network_name: Optional[str] = None
    team_name: Optional[str] = None
    manager_id: Optional[int] = None
    manager_name: Optional[str] = None


class ChannelUpdateRequest(BaseModel):
    """``manager_id`` is only acted on when present in the body; null clears the manager."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    network_id: Optional[int] = None
    team_id: Optional[int] = None
    status: Optional[ChannelStatus] = None
    manager_id: Optional[int] = None


class ChannelResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    youtube_channel_id: str
    status: ChannelStatus
    network_id: Optional[int] = None
    team_id: Optional[int] = None


class ChannelAssignRequest(BaseModel):
    staff_id: int
    channel_id: int
    role: ChannelStaffRole = ChannelStaffRole.manager


class StaffListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: StaffRole
    is_active: bool
    created_at: Optional[datetime] = None


class StaffRoleUpdate(BaseModel):
    role: StaffRole
