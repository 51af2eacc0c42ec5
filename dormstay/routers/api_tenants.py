from datetime import datetime
from typing import Optional, List
from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from ..models import User, ResidentKind, RoomType
from ..security import require_user, require_manager, require_admin
from ..services import aggregator, tenants
from ..services.allocator import admit_dependent
from ..store import SqlRecordStore, get_store
from .api_rooms import TenantIn, AdmissionOut, OccupancyOut

router = APIRouter(prefix="/api/v1/tenants", tags=["tenants"])

# ==== Schemas ====

class CurrentRoomOut(BaseModel):
    id: int
    room_number: str
    room_type: RoomType
    floor: int

    class Config:
        use_enum_values = True
        from_attributes = True

class TenantOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    residents: ResidentKind
    primary_tenant_id: Optional[int] = None
    is_active: bool
    has_contract: bool = False
    created_at: Optional[datetime] = None

    class Config:
        use_enum_values = True
        from_attributes = True

class TenantListOut(TenantOut):
    current_room: Optional[CurrentRoomOut] = None
    room_full: bool = False

class TenantDetailOut(TenantOut):
    current_room: Optional[CurrentRoomOut] = None
    dependents: List[TenantOut] = []

class TenantUpdateIn(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None

class ContractIn(BaseModel):
    contract_ref: Optional[str] = None

class ContractOut(BaseModel):
    tenant_id: int
    contract_ref: Optional[str] = None

# ==== Helpers ====

def _tenant_row(tenant) -> dict:
    data = TenantOut.model_validate(tenant).model_dump()
    data["has_contract"] = bool(tenant.contract_ref)
    return data

# ==== Tenants ====

@router.get("", response_model=List[TenantListOut])
def api_tenants(search: Optional[str] = None, user: User = Depends(require_user), store: SqlRecordStore = Depends(get_store)):
    rows = []
    for item in tenants.list_tenants(store, search=search):
        data = _tenant_row(item.tenant)
        data["current_room"] = item.current_room
        data["room_full"] = item.room_full
        rows.append(data)
    return rows

@router.get("/{tenant_id}", response_model=TenantDetailOut)
def api_tenant(tenant_id: int, user: User = Depends(require_user), store: SqlRecordStore = Depends(get_store)):
    tenant = tenants.get_tenant(store, tenant_id)
    data = _tenant_row(tenant)
    data["current_room"] = aggregator.current_room_of(store, tenant.id)
    data["dependents"] = [_tenant_row(d) for d in tenants.list_dependents(store, tenant.id)]
    return data

@router.patch("/{tenant_id}", response_model=TenantOut)
def api_update_tenant(tenant_id: int, payload: TenantUpdateIn, user: User = Depends(require_manager), store: SqlRecordStore = Depends(get_store)):
    fields = payload.model_dump(exclude_unset=True)
    return _tenant_row(tenants.update_tenant(store, tenant_id, fields))

@router.delete("/{tenant_id}", status_code=204)
def api_delete_tenant(
    tenant_id: int,
    hard: bool = False,
    user: User = Depends(require_manager),
    store: SqlRecordStore = Depends(get_store),
):
    if hard:
        # Hard delete is an admin-only cleanup path
        require_admin(user)
        tenants.delete_tenant(store, tenant_id)
    else:
        tenants.deactivate_tenant(store, tenant_id)
    return Response(status_code=204)

@router.post("/{tenant_id}/move-out", response_model=OccupancyOut)
def api_move_out(tenant_id: int, user: User = Depends(require_manager), store: SqlRecordStore = Depends(get_store)):
    return tenants.move_out(store, tenant_id)

# ==== Dependents ====

@router.post("/{tenant_id}/dependents", response_model=AdmissionOut, status_code=201)
def api_admit_dependent(tenant_id: int, payload: TenantIn, user: User = Depends(require_manager), store: SqlRecordStore = Depends(get_store)):
    admission = admit_dependent(store, tenant_id, payload.to_draft())
    return {"tenant": admission.tenant, "occupancy": admission.occupancy}

@router.delete("/{tenant_id}/dependents")
def api_remove_dependents(tenant_id: int, user: User = Depends(require_manager), store: SqlRecordStore = Depends(get_store)):
    return {"removed": tenants.remove_dependents(store, tenant_id)}

# ==== Contract ====

@router.get("/{tenant_id}/contract", response_model=ContractOut)
def api_contract(tenant_id: int, user: User = Depends(require_user), store: SqlRecordStore = Depends(get_store)):
    tenant = tenants.get_tenant(store, tenant_id)
    return {"tenant_id": tenant.id, "contract_ref": tenant.contract_ref}

@router.put("/{tenant_id}/contract", response_model=ContractOut)
def api_set_contract(tenant_id: int, payload: ContractIn, user: User = Depends(require_manager), store: SqlRecordStore = Depends(get_store)):
    tenant = tenants.set_contract_ref(store, tenant_id, payload.contract_ref)
    return {"tenant_id": tenant.id, "contract_ref": tenant.contract_ref}
