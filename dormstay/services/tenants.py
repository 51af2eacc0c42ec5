"""
Tenant lifecycle after admission: listing, edits, contract references,
moving out, deactivation and administrative deletion.

A tenant leaves a room by having its current occupancy flipped to not
current. Counts and the derived current room follow from that alone.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import NotFound, QueryError, StoreError, ValidationFailed
from ..models import Occupancy, ResidentKind, Room, Tenant
from ..store import RecordStore
from . import aggregator

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("first_name", "last_name", "email", "phone", "address", "emergency_contact")


@dataclass
class TenantListing:
    tenant: Tenant
    current_room: Optional[Room]
    room_full: bool


def get_tenant(store: RecordStore, tenant_id: int) -> Tenant:
    try:
        tenant = store.get(Tenant, tenant_id)
    except StoreError as e:
        raise QueryError(f"Could not read tenant {tenant_id}", tenant_id=tenant_id) from e
    if tenant is None:
        raise NotFound(f"Tenant {tenant_id} not found", tenant_id=tenant_id)
    return tenant


def list_tenants(store: RecordStore, search: Optional[str] = None) -> list[TenantListing]:
    """Active primary tenants, newest first.

    ``search`` matches full name, email, phone or current room number.
    """
    try:
        tenants = store.query(
            Tenant, {"is_active": True, "residents": ResidentKind.PRIMARY}, order_by=("-created_at", "-id")
        )
        current = store.query(Occupancy, {"is_current": True})
        rooms = {r.id: r for r in store.query(Room)}
    except StoreError as e:
        raise QueryError("Could not list tenants") from e

    room_of = {o.tenant_id: rooms.get(o.room_id) for o in current}
    counts = aggregator.occupancy_map(store)

    needle = (search or "").strip().lower()
    listings = []
    for t in tenants:
        room = room_of.get(t.id)
        if needle:
            haystack = (
                t.full_name.lower(),
                (t.email or "").lower(),
                (t.phone or "").lower(),
                room.room_number.lower() if room else "",
            )
            if not any(needle in h for h in haystack):
                continue
        full = room is not None and counts.get(room.id, 0) >= (room.capacity or 0)
        listings.append(TenantListing(tenant=t, current_room=room, room_full=full))
    return listings


def list_dependents(store: RecordStore, primary_tenant_id: int) -> list[Tenant]:
    try:
        return store.query(
            Tenant,
            {"primary_tenant_id": primary_tenant_id, "residents": ResidentKind.DEPENDENT, "is_active": True},
            order_by=("id",),
        )
    except StoreError as e:
        raise QueryError(f"Could not list dependents of tenant {primary_tenant_id}") from e


def update_tenant(store: RecordStore, tenant_id: int, fields: dict) -> Tenant:
    """Edit contact details. Room, kind and active flag are not editable here."""
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationFailed(f"Fields not editable: {', '.join(sorted(unknown))}")
    for name in ("first_name", "last_name"):
        if name in fields and not (fields[name] or "").strip():
            raise ValidationFailed(f"{name} must not be empty")

    tenant = get_tenant(store, tenant_id)
    if not fields:
        return tenant
    clean = {k: (v.strip() or None) if isinstance(v, str) else v for k, v in fields.items()}
    try:
        updated = store.update(Tenant, tenant.id, clean)
    except StoreError as e:
        raise QueryError(f"Could not update tenant {tenant_id}", tenant_id=tenant_id) from e
    if updated is None:
        raise NotFound(f"Tenant {tenant_id} not found", tenant_id=tenant_id)
    return updated


def set_contract_ref(store: RecordStore, tenant_id: int, contract_ref: Optional[str]) -> Tenant:
    """Attach (or clear, with None) the reference to a tenant's stored contract."""
    tenant = get_tenant(store, tenant_id)
    ref = (contract_ref or "").strip() or None
    try:
        updated = store.update(Tenant, tenant.id, {"contract_ref": ref})
    except StoreError as e:
        raise QueryError(f"Could not save contract of tenant {tenant_id}", tenant_id=tenant_id) from e
    if updated is None:
        raise NotFound(f"Tenant {tenant_id} not found", tenant_id=tenant_id)
    return updated


def _retire_current(store: RecordStore, tenant_id: int) -> Optional[Occupancy]:
    try:
        rows = store.query(Occupancy, {"tenant_id": tenant_id, "is_current": True})
        retired = None
        for occ in rows:
            retired = store.update(Occupancy, occ.id, {"is_current": False}) or retired
    except StoreError as e:
        raise QueryError(f"Could not retire occupancy of tenant {tenant_id}", tenant_id=tenant_id) from e
    return retired


def move_out(store: RecordStore, tenant_id: int) -> Occupancy:
    """End the tenant's current occupancy. The tenant stays active."""
    tenant = get_tenant(store, tenant_id)
    retired = _retire_current(store, tenant.id)
    if retired is None:
        raise NotFound(f"Tenant {tenant_id} has no current room", tenant_id=tenant_id)
    logger.info("Tenant %s moved out of room %s", tenant.id, retired.room_id)
    return retired


def deactivate_tenant(store: RecordStore, tenant_id: int) -> Tenant:
    """Logical removal: retire the current occupancy, then clear the active flag."""
    tenant = get_tenant(store, tenant_id)
    _retire_current(store, tenant.id)
    try:
        updated = store.update(Tenant, tenant.id, {"is_active": False})
    except StoreError as e:
        raise QueryError(f"Could not deactivate tenant {tenant_id}", tenant_id=tenant_id) from e
    logger.info("Deactivated tenant %s", tenant.id)
    return updated or tenant


def remove_dependents(store: RecordStore, primary_tenant_id: int) -> int:
    """Deactivate every active dependent admitted under a primary tenant."""
    get_tenant(store, primary_tenant_id)
    dependents = list_dependents(store, primary_tenant_id)
    for dep in dependents:
        deactivate_tenant(store, dep.id)
    if dependents:
        logger.info("Removed %d dependents of tenant %s", len(dependents), primary_tenant_id)
    return len(dependents)


def delete_tenant(store: RecordStore, tenant_id: int) -> None:
    """Administrative hard delete. Occupancy rows go first so no count ever
    includes a tenant that no longer exists.

    Dependents leave with their primary: they are deactivated (their history
    kept) and unlinked from the deleted record.
    """
    tenant = get_tenant(store, tenant_id)
    remove_dependents(store, tenant.id)
    _retire_current(store, tenant.id)
    try:
        for occ in store.query(Occupancy, {"tenant_id": tenant.id}):
            store.delete(Occupancy, occ.id)
        for dep in store.query(Tenant, {"primary_tenant_id": tenant.id}):
            store.update(Tenant, dep.id, {"primary_tenant_id": None})
        store.delete(Tenant, tenant.id)
    except StoreError as e:
        raise QueryError(f"Could not delete tenant {tenant_id}", tenant_id=tenant_id) from e
    logger.warning("Hard-deleted tenant %s", tenant_id)
