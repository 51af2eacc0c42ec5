"""
Room status state machine.

    vacant      -> occupied, maintenance
    occupied    -> maintenance
    maintenance -> vacant, occupied

A room with occupants is never marked vacant directly; it has to pass through
maintenance. Self-transitions are rejected. Entering maintenance does not touch
existing occupancy rows, it only stops new admissions.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from ..errors import InvalidTransition, PersistFailed, StoreError
from ..models import Room, RoomStatus
from ..store import RecordStore
from .allocator import RoomLocks, load_room, room_locks

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = frozenset(
    {
        (RoomStatus.VACANT, RoomStatus.OCCUPIED),
        (RoomStatus.VACANT, RoomStatus.MAINTENANCE),
        (RoomStatus.OCCUPIED, RoomStatus.MAINTENANCE),
        (RoomStatus.MAINTENANCE, RoomStatus.VACANT),
        (RoomStatus.MAINTENANCE, RoomStatus.OCCUPIED),
    }
)


def can_transition(current: RoomStatus, target: RoomStatus) -> bool:
    return (RoomStatus(current), RoomStatus(target)) in ALLOWED_TRANSITIONS


def allowed_targets(current: RoomStatus) -> list[RoomStatus]:
    """Statuses reachable from ``current`` in one step, in declaration order."""
    return [s for s in RoomStatus if can_transition(current, s)]


def _coerce(target) -> RoomStatus:
    try:
        return RoomStatus(target)
    except ValueError:
        raise InvalidTransition(f"Unknown room status {target!r}", target=str(target))


def transition(
    store: RecordStore,
    room: Room,
    target,
    now: Optional[Callable[[], datetime]] = None,
) -> Room:
    """Move ``room`` to ``target`` and stamp ``updated_at``.

    The write only lands if the row still holds the status we validated
    against; if another request changed it first, InvalidTransition is raised.
    """
    target = _coerce(target)
    current = RoomStatus(room.status)
    if not can_transition(current, target):
        logger.warning("Rejected room %s transition %s -> %s", room.room_number, current.value, target.value)
        raise InvalidTransition(
            f"Room {room.room_number} cannot go from {current.value} to {target.value}",
            room_id=room.id,
            current=current.value,
            target=target.value,
        )

    stamp = (now or datetime.utcnow)()
    try:
        updated = store.update(Room, room.id, {"status": target, "updated_at": stamp}, expect={"status": current})
    except StoreError as e:
        raise PersistFailed(f"Could not save status of room {room.room_number}", room_id=room.id) from e

    if updated is None:
        try:
            fresh = store.get(Room, room.id)
        except StoreError as e:
            raise PersistFailed(f"Could not save status of room {room.room_number}", room_id=room.id) from e
        if fresh is not None and RoomStatus(fresh.status) != current:
            raise InvalidTransition(
                f"Room {room.room_number} changed to {RoomStatus(fresh.status).value} concurrently",
                room_id=room.id,
                current=RoomStatus(fresh.status).value,
                target=target.value,
            )
        raise PersistFailed(f"Room {room.room_number} was not updated", room_id=room.id)

    logger.info("Room %s status %s -> %s", updated.room_number, current.value, target.value)
    return updated


def set_room_status(
    store: RecordStore,
    room_id: int,
    target,
    now: Optional[Callable[[], datetime]] = None,
    locks: Optional[RoomLocks] = None,
) -> Room:
    """Change a room's status by id.

    Runs under the room's admission lock, so an admission that already passed
    its maintenance check finishes before the room goes offline.
    """
    if locks is None:
        locks = room_locks
    load_room(store, room_id)
    with locks.hold(room_id, error=PersistFailed):
        room = load_room(store, room_id)
        return transition(store, room, target, now=now)
