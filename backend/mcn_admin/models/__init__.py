"""Models package."""
from mcn_admin.models.staff import Staff, StaffRole, TOP_ROLE
from mcn_admin.models.catalog import Team, TeamMember, Network, Project, ProjectChannel
from mcn_admin.models.channel import Channel, ChannelStatus, ChannelStaffRole, StaffChannel
from mcn_admin.models.metrics import ChannelMetricDaily
from mcn_admin.models.task import Task
from mcn_admin.models.audit import ActionAuditLog

__all__ = [
    "Staff", "StaffRole", "TOP_ROLE",
    "Team", "TeamMember", "Network", "Project", "ProjectChannel",
    "Channel", "ChannelStatus", "ChannelStaffRole", "StaffChannel",
    "ChannelMetricDaily",
    "Task",
    "ActionAuditLog",
]
