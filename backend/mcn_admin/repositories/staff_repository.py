from __future__ import annotations

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.models import Staff, StaffChannel, StaffRole, TeamMember


class StaffRepository:
    async def count(self, db: AsyncSession) -> int:
        row = await db.execute(select(func.count(Staff.id)))
        return int(row.scalar_one() or 0)

    async def get(self, db: AsyncSession, staff_id: int) -> Staff | None:
        row = await db.execute(select(Staff).where(Staff.id == staff_id))
        return row.scalar_one_or_none()

    async def get_by_email(self, db: AsyncSession, email: str) -> Staff | None:
        row = await db.execute(select(Staff).where(func.lower(Staff.email) == email.strip().lower()))
        return row.scalar_one_or_none()

    async def create(
        self,
        db: AsyncSession,
        *,
        email: str,
        name: str,
        hashed_password: str,
        role: StaffRole,
    ) -> Staff:
        staff = Staff(
            email=email.strip().lower(),
            name=name.strip(),
            hashed_password=hashed_password,
            role=role,
            is_active=True,
        )
        db.add(staff)
        await db.flush()
        await db.refresh(staff)
        return staff

    async def list_active(self, db: AsyncSession) -> list[Staff]:
        rows = await db.execute(
            select(Staff)
            .where(Staff.role != StaffRole.deleted)
            .order_by(Staff.id.desc())
        )
        return list(rows.scalars().all())

    async def soft_delete(self, db: AsyncSession, staff_id: int) -> int:
        """Drop every channel and team association, then mark the account deleted. Caller commits."""
        await db.execute(delete(StaffChannel).where(StaffChannel.staff_id == staff_id))
        await db.execute(delete(TeamMember).where(TeamMember.staff_id == staff_id))
        result = await db.execute(
            update(Staff)
            .where(Staff.id == staff_id)
            .values(role=StaffRole.deleted, is_active=False)
        )
        return result.rowcount or 0


staff_repository = StaffRepository()
