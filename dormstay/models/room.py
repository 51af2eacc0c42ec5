from __future__ import annotations
from datetime import datetime
from typing import TYPE_CHECKING
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, Numeric, Enum, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .occupancy import Occupancy

class RoomStatus(str, PyEnum):
    VACANT = "vacant"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"

class RoomType(str, PyEnum):
    STANDARD_SINGLE = "Standard Single"
    STANDARD_DOUBLE = "Standard Double"

    @property
    def default_capacity(self) -> int:
        return ROOM_TYPE_CAPACITY[self]

ROOM_TYPE_CAPACITY = {
    RoomType.STANDARD_SINGLE: 1,
    RoomType.STANDARD_DOUBLE: 2,
}

class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    room_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    room_type: Mapped[RoomType] = mapped_column(
        Enum(RoomType, values_callable=lambda e: [m.value for m in e], name="roomtype"), nullable=False
    )
    # Fixed once the room is created
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)
    floor: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[RoomStatus] = mapped_column(
        Enum(RoomStatus, values_callable=lambda e: [m.value for m in e], name="roomstatus"),
        default=RoomStatus.VACANT,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    occupancies: Mapped[list[Occupancy]] = relationship(back_populates="room")
