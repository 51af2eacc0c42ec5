import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..config import settings
from ..errors import DuplicateRoomNumber, QueryError, RoomLookupFailed, StoreError, ValidationFailed
from ..models import Room, RoomStatus, RoomType
from ..store import RecordStore
from . import aggregator
from .room_status import allowed_targets

logger = logging.getLogger(__name__)


@dataclass
class RoomOccupancy:
    room: Room
    current_occupants: int
    allowed_statuses: list[RoomStatus] = field(default_factory=list)

    @property
    def capacity(self) -> int:
        return self.room.capacity or 0

    @property
    def is_full(self) -> bool:
        return self.current_occupants >= self.capacity


def _clamp_floor(floor: Optional[int]) -> int:
    if floor is None:
        return settings.ROOM_FLOOR_MIN
    return max(settings.ROOM_FLOOR_MIN, min(settings.ROOM_FLOOR_MAX, int(floor)))


def _check_price(price) -> float:
    if price is None:
        return settings.DEFAULT_ROOM_PRICE
    if price < 0:
        raise ValidationFailed("price must not be negative")
    return price


def _number_taken(store: RecordStore, number: str) -> bool:
    try:
        return store.count(Room, {"room_number": number}) > 0
    except StoreError as e:
        raise QueryError("Could not check room numbers") from e


def create_room(
    store: RecordStore,
    room_number: str,
    room_type,
    price: Optional[float] = None,
    floor: Optional[int] = None,
) -> Room:
    """Create a vacant room. Capacity comes from the room type and never changes afterwards."""
    number = re.sub(r"\D", "", room_number or "")
    if not number:
        raise ValidationFailed("room_number must contain digits")
    try:
        rtype = RoomType(room_type)
    except ValueError:
        raise ValidationFailed(f"Unknown room type {room_type!r}")

    if _number_taken(store, number):
        raise DuplicateRoomNumber(f"Room {number} already exists", room_number=number)
    now = datetime.utcnow()
    try:
        room = store.insert(
            Room,
            {
                "room_number": number,
                "room_type": rtype,
                "capacity": rtype.default_capacity,
                "price": _check_price(price),
                "floor": _clamp_floor(floor),
                "status": RoomStatus.VACANT,
                "created_at": now,
                "updated_at": now,
            },
        )
    except StoreError as e:
        # A concurrent insert of the same number trips the unique index
        if _number_taken(store, number):
            raise DuplicateRoomNumber(f"Room {number} already exists", room_number=number) from e
        raise QueryError(f"Could not create room {number}", room_number=number) from e
    logger.info("Created room %s (%s, capacity %s)", room.room_number, rtype.value, room.capacity)
    return room


def get_room(store: RecordStore, room_id: int) -> Room:
    try:
        room = store.get(Room, room_id)
    except StoreError as e:
        raise RoomLookupFailed(f"Could not read room {room_id}", room_id=room_id) from e
    if room is None:
        raise RoomLookupFailed(f"Room {room_id} not found", room_id=room_id)
    return room


def update_room(store: RecordStore, room_id: int, price: Optional[float] = None, floor: Optional[int] = None) -> Room:
    """Edit price and floor. Capacity and status are not editable here."""
    room = get_room(store, room_id)
    fields = {}
    if price is not None:
        fields["price"] = _check_price(price)
    if floor is not None:
        fields["floor"] = _clamp_floor(floor)
    if not fields:
        return room
    fields["updated_at"] = datetime.utcnow()
    try:
        updated = store.update(Room, room.id, fields)
    except StoreError as e:
        raise QueryError(f"Could not update room {room_id}", room_id=room_id) from e
    if updated is None:
        raise RoomLookupFailed(f"Room {room_id} not found", room_id=room_id)
    return updated


def list_rooms(
    store: RecordStore,
    search: Optional[str] = None,
    status=None,
    room_type=None,
) -> list[RoomOccupancy]:
    """Rooms ordered by numeric room number, each with its live occupant count.

    ``search`` matches a substring of the room number; ``status`` and
    ``room_type`` are exact filters.
    """
    filters = {}
    try:
        if status:
            filters["status"] = status if isinstance(status, RoomStatus) else RoomStatus(status.lower())
        if room_type:
            filters["room_type"] = RoomType(room_type)
    except ValueError as e:
        raise ValidationFailed(str(e))

    try:
        rooms = store.query(Room, filters)
    except StoreError as e:
        raise QueryError("Could not list rooms") from e
    # Room numbers are digits only; order them by value
    rooms.sort(key=lambda r: (int(r.room_number), r.room_number))
    if search:
        needle = search.strip().lower()
        rooms = [r for r in rooms if needle in r.room_number.lower()]

    counts = aggregator.occupancy_map(store)
    return [
        RoomOccupancy(room=r, current_occupants=counts.get(r.id, 0), allowed_statuses=allowed_targets(r.status))
        for r in rooms
    ]
