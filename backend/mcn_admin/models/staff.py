"""
MCN Admin Dashboard - Staff Model
=================================
Internal operator accounts with an ordered privilege role.
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, func

from mcn_admin.core.database import Base


class StaffRole(str, enum.Enum):
    deleted = "deleted"
    viewer = "viewer"
    editor = "editor"
    manager = "manager"
    admin = "admin"

    @property
    def rank(self) -> int:
        return _ROLE_ORDER.index(self)

    def at_least(self, other: "StaffRole") -> bool:
        return self.rank >= other.rank


# lowest -> highest; ``deleted`` ranks below every real role
_ROLE_ORDER = [
    StaffRole.deleted,
    StaffRole.viewer,
    StaffRole.editor,
    StaffRole.manager,
    StaffRole.admin,
]

TOP_ROLE = StaffRole.admin


class Staff(Base):
    __tablename__ = "staff_users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)

    # Role & status
    role = Column(Enum(StaffRole, name="staff_role", native_enum=False, length=20), nullable=False, default=StaffRole.viewer)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_deleted(self) -> bool:
        return self.role == StaffRole.deleted

    def __repr__(self):
        return f"<Staff {self.email} ({self.role})>"
