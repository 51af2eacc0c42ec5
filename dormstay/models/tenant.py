from __future__ import annotations
from datetime import datetime
from typing import TYPE_CHECKING, Optional
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, ForeignKey, Enum, DateTime, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .occupancy import Occupancy

class ResidentKind(str, PyEnum):
    PRIMARY = "primary"
    DEPENDENT = "dependent"

class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    emergency_contact: Mapped[str | None] = mapped_column(String(200))
    address: Mapped[str | None] = mapped_column(Text)
    residents: Mapped[ResidentKind] = mapped_column(
        Enum(ResidentKind, values_callable=lambda e: [m.value for m in e], name="residentkind"),
        default=ResidentKind.PRIMARY,
        nullable=False,
    )
    primary_tenant_id: Mapped[int | None] = mapped_column(ForeignKey("tenants.id"), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    contract_ref: Mapped[str | None] = mapped_column(String(500))

    # Room the tenant was admitted into, kept for display. The current room is
    # always read from the occupancy table.
    room_id: Mapped[int | None] = mapped_column(ForeignKey("rooms.id"))
    room_number: Mapped[str | None] = mapped_column(String(20))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    occupancies: Mapped[list[Occupancy]] = relationship(back_populates="tenant")
    primary_tenant: Mapped[Optional[Tenant]] = relationship(remote_side=[id])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
