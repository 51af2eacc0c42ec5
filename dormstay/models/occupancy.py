from __future__ import annotations
from datetime import date
from typing import TYPE_CHECKING
from sqlalchemy import Integer, ForeignKey, Date, Boolean, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .room import Room
    from .tenant import Tenant

class Occupancy(Base):
    __tablename__ = "occupancy"
    __table_args__ = (
        # A tenant holds at most one current occupancy
        Index(
            "uq_occupancy_current_tenant",
            "tenant_id",
            unique=True,
            sqlite_where=text("is_current"),
            postgresql_where=text("is_current"),
        ),
        Index("ix_occupancy_room_current", "room_id", "is_current"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id"), nullable=False, index=True)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), nullable=False)
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    tenant: Mapped[Tenant] = relationship(back_populates="occupancies")
    room: Mapped[Room] = relationship(back_populates="occupancies")
