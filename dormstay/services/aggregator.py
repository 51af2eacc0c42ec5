"""
Occupancy figures derived from the record store.

Nothing here is cached: every call reads the occupancy table as it is now,
because admissions compare these numbers against capacity.
"""
from collections import Counter
from typing import Optional

from ..errors import QueryError, StoreError
from ..models import Occupancy, Room, Tenant
from ..store import RecordStore


def current_occupant_count(store: RecordStore, room_id: int) -> int:
    try:
        return store.count(Occupancy, {"room_id": room_id, "is_current": True})
    except StoreError as e:
        raise QueryError(f"Could not count occupants of room {room_id}", room_id=room_id) from e


def capacity_of(store: RecordStore, room_id: int) -> int:
    try:
        room = store.get(Room, room_id)
    except StoreError as e:
        raise QueryError(f"Could not read room {room_id}", room_id=room_id) from e
    if room is None:
        raise QueryError(f"Room {room_id} does not exist", room_id=room_id)
    return room.capacity or 0


def occupancy_map(store: RecordStore) -> dict[int, int]:
    """Current-occupant count per room id. Rooms with nobody in them are absent."""
    try:
        rows = store.query(Occupancy, {"is_current": True})
    except StoreError as e:
        raise QueryError("Could not read current occupancy") from e
    return dict(Counter(o.room_id for o in rows))


def capacity_map(store: RecordStore) -> dict[int, int]:
    try:
        rooms = store.query(Room)
    except StoreError as e:
        raise QueryError("Could not read rooms") from e
    return {r.id: r.capacity or 0 for r in rooms}


def current_occupancy_of(store: RecordStore, tenant_id: int) -> Optional[Occupancy]:
    try:
        rows = store.query(Occupancy, {"tenant_id": tenant_id, "is_current": True}, order_by=("-check_in_date", "-id"))
    except StoreError as e:
        raise QueryError(f"Could not read occupancy of tenant {tenant_id}", tenant_id=tenant_id) from e
    return rows[0] if rows else None


def current_room_of(store: RecordStore, tenant_id: int) -> Optional[Room]:
    """The room a tenant lives in right now, looked up through its current occupancy."""
    occ = current_occupancy_of(store, tenant_id)
    if occ is None:
        return None
    try:
        return store.get(Room, occ.room_id)
    except StoreError as e:
        raise QueryError(f"Could not read room {occ.room_id}", room_id=occ.room_id) from e


def current_occupants(store: RecordStore, room_id: int) -> list[Tenant]:
    try:
        rows = store.query(Occupancy, {"room_id": room_id, "is_current": True}, order_by=("check_in_date", "id"))
        tenant_ids = [o.tenant_id for o in rows]
        if not tenant_ids:
            return []
        tenants = {t.id: t for t in store.query(Tenant, {"id": tenant_ids})}
    except StoreError as e:
        raise QueryError(f"Could not read occupants of room {room_id}", room_id=room_id) from e
    return [tenants[tid] for tid in tenant_ids if tid in tenants]
