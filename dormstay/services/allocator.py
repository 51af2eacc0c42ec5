"""
Tenant admission.

An admission writes a tenant row and then its current occupancy row. The
capacity check and both writes run under a per-room lock so two requests can
never both take the last free bed.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from datetime import date
from typing import NamedTuple, Optional

from ..config import settings
from ..errors import (
    OccupancyCreateFailed,
    OccupancyQueryFailed,
    QueryError,
    RoomFull,
    RoomLookupFailed,
    RoomUnavailable,
    StoreError,
    TenantCreateFailed,
    NotFound,
    ValidationFailed,
)
from ..models import Occupancy, ResidentKind, Room, RoomStatus, Tenant
from ..store import RecordStore
from . import aggregator
from .capacity import can_admit

logger = logging.getLogger(__name__)


@dataclass
class TenantDraft:
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None

    def to_values(self) -> dict:
        values = {}
        for key, value in asdict(self).items():
            if isinstance(value, str):
                value = value.strip()
            # Blank optional fields are stored as NULL
            values[key] = value or None
        return values


class Admission(NamedTuple):
    tenant: Tenant
    occupancy: Occupancy


class RoomLocks:
    """One mutex per room id, created on first use.

    Admissions and status changes on the same room take the same mutex.
    Callers create a room's lock only after seeing the room exist.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def __contains__(self, room_id) -> bool:
        with self._guard:
            return room_id in self._locks

    def for_room(self, room_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(room_id)
            if lock is None:
                lock = self._locks[room_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, room_id: int, timeout: Optional[float] = None, error=OccupancyQueryFailed):
        """Hold the room's mutex; raise ``error`` if it cannot be had within ``timeout`` seconds."""
        lock = self.for_room(room_id)
        wait = settings.ADMISSION_LOCK_TIMEOUT_SECONDS if timeout is None else timeout
        if not lock.acquire(timeout=wait):
            raise error(f"Timed out waiting for another change on room {room_id}", room_id=room_id)
        try:
            yield
        finally:
            lock.release()


room_locks = RoomLocks()


def load_room(store: RecordStore, room_id: int) -> Room:
    try:
        room = store.get(Room, room_id)
    except StoreError as e:
        raise RoomLookupFailed(f"Could not read room {room_id}", room_id=room_id) from e
    if room is None:
        raise RoomLookupFailed(f"Room {room_id} not found", room_id=room_id)
    return room


def _validate_draft(draft: TenantDraft):
    if not (draft.first_name or "").strip() or not (draft.last_name or "").strip():
        raise ValidationFailed("first_name and last_name are required")


def _orphaned(tenant: Tenant, room: Room) -> OccupancyCreateFailed:
    logger.error(
        "Partial admission: tenant %s was created but has no occupancy in room %s; needs reconciliation",
        tenant.id,
        room.room_number,
    )
    return OccupancyCreateFailed(
        f"Tenant {tenant.id} created without occupancy in room {room.room_number}",
        tenant=tenant,
        room_id=room.id,
        tenant_id=tenant.id,
    )


def admit_tenant(
    store: RecordStore,
    room_id: int,
    draft: TenantDraft,
    kind: ResidentKind = ResidentKind.PRIMARY,
    primary_tenant_id: Optional[int] = None,
    locks: Optional[RoomLocks] = None,
    today: Optional[date] = None,
) -> Admission:
    """Create a tenant in ``room_id`` together with its current occupancy row.

    Raises RoomLookupFailed, OccupancyQueryFailed, RoomFull, RoomUnavailable,
    TenantCreateFailed or OccupancyCreateFailed. Room status is left alone.
    """
    _validate_draft(draft)
    if locks is None:
        locks = room_locks

    load_room(store, room_id)
    # Held until the occupancy row is written, so a second admission counts it
    # and a status change waits for it
    with locks.hold(room_id):
        room = load_room(store, room_id)

        if room.status == RoomStatus.MAINTENANCE:
            logger.info("Admission to room %s rejected: under maintenance", room.room_number)
            raise RoomUnavailable(f"Room {room.room_number} is under maintenance", room_id=room_id)

        try:
            occupants = aggregator.current_occupant_count(store, room_id)
        except QueryError as e:
            raise OccupancyQueryFailed(f"Could not count occupants of room {room_id}", room_id=room_id) from e

        if not can_admit(room.capacity or 0, occupants):
            logger.info("Admission to room %s rejected: %s/%s beds taken", room.room_number, occupants, room.capacity)
            raise RoomFull(f"Room {room.room_number} is full", room_id=room_id)

        values = draft.to_values()
        values.update(
            residents=kind,
            primary_tenant_id=primary_tenant_id,
            room_id=room.id,
            room_number=room.room_number,
            is_active=True,
        )
        try:
            tenant = store.insert(Tenant, values)
        except StoreError as e:
            raise TenantCreateFailed(f"Could not create tenant for room {room_id}", room_id=room_id) from e
        if tenant is None:
            raise TenantCreateFailed(f"Store returned no tenant for room {room_id}", room_id=room_id)

        try:
            occupancy = store.insert(
                Occupancy,
                {
                    "tenant_id": tenant.id,
                    "room_id": room.id,
                    "check_in_date": today or date.today(),
                    "is_current": True,
                },
            )
        except StoreError as e:
            raise _orphaned(tenant, room) from e
        if occupancy is None:
            raise _orphaned(tenant, room)

    logger.info("Admitted %s tenant %s into room %s", kind.value, tenant.id, room.room_number)
    return Admission(tenant, occupancy)


def admit_dependent(
    store: RecordStore,
    primary_tenant_id: int,
    draft: TenantDraft,
    locks: Optional[RoomLocks] = None,
    today: Optional[date] = None,
) -> Admission:
    """Admit a dependent into the room its primary tenant currently occupies."""
    try:
        primary = store.get(Tenant, primary_tenant_id)
    except StoreError as e:
        raise QueryError(f"Could not read tenant {primary_tenant_id}") from e
    if primary is None or not primary.is_active:
        raise NotFound(f"Tenant {primary_tenant_id} not found", tenant_id=primary_tenant_id)
    if primary.residents != ResidentKind.PRIMARY:
        raise ValidationFailed("Dependents can only be added under a primary tenant", tenant_id=primary_tenant_id)

    room = aggregator.current_room_of(store, primary.id)
    if room is None:
        raise ValidationFailed(f"Tenant {primary.id} has no current room", tenant_id=primary.id)

    return admit_tenant(
        store,
        room.id,
        draft,
        kind=ResidentKind.DEPENDENT,
        primary_tenant_id=primary.id,
        locks=locks,
        today=today,
    )
