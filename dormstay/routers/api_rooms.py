from datetime import date, datetime
from typing import Optional, List
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..models import User, ResidentKind, RoomStatus, RoomType
from ..security import require_user, require_manager
from ..services import aggregator, room_status, rooms
from ..services.allocator import TenantDraft, admit_tenant
from ..store import SqlRecordStore, get_store

router = APIRouter(prefix="/api/v1/rooms", tags=["rooms"])

# ==== Schemas ====

class RoomOut(BaseModel):
    id: int
    room_number: str
    room_type: RoomType
    capacity: int
    price: float
    floor: int
    status: RoomStatus
    updated_at: Optional[datetime] = None

    class Config:
        use_enum_values = True
        from_attributes = True

class RoomListOut(RoomOut):
    current_occupants: int
    is_full: bool
    allowed_statuses: List[RoomStatus] = []

class OccupantOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    residents: ResidentKind
    phone: Optional[str] = None

    class Config:
        from_attributes = True

class RoomDetailOut(RoomListOut):
    occupants: List[OccupantOut] = []

class RoomCreateIn(BaseModel):
    room_number: str
    room_type: RoomType
    price: Optional[float] = Field(default=None, ge=0)
    floor: Optional[int] = None

class RoomUpdateIn(BaseModel):
    price: Optional[float] = Field(default=None, ge=0)
    floor: Optional[int] = None

class StatusIn(BaseModel):
    status: str

class OccupancyCountOut(BaseModel):
    room_id: int
    current_occupants: int
    capacity: int

class TenantIn(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None

    def to_draft(self) -> TenantDraft:
        return TenantDraft(**self.model_dump())

class AdmittedTenantOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    residents: ResidentKind
    primary_tenant_id: Optional[int] = None
    room_id: Optional[int] = None
    room_number: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True

class OccupancyOut(BaseModel):
    id: int
    tenant_id: int
    room_id: int
    check_in_date: date
    is_current: bool

    class Config:
        from_attributes = True

class AdmissionOut(BaseModel):
    tenant: AdmittedTenantOut
    occupancy: OccupancyOut

# ==== Helpers ====

def _list_row(item: rooms.RoomOccupancy) -> dict:
    data = RoomOut.model_validate(item.room).model_dump()
    data.update(
        current_occupants=item.current_occupants,
        is_full=item.is_full,
        allowed_statuses=[s.value for s in item.allowed_statuses],
    )
    return data

# ==== Rooms ====

@router.get("", response_model=List[RoomListOut])
def api_rooms(
    search: Optional[str] = None,
    status: Optional[str] = None,
    room_type: Optional[str] = None,
    user: User = Depends(require_user),
    store: SqlRecordStore = Depends(get_store),
):
    return [_list_row(item) for item in rooms.list_rooms(store, search=search, status=status, room_type=room_type)]

@router.post("", response_model=RoomOut, status_code=201)
def api_create_room(payload: RoomCreateIn, user: User = Depends(require_manager), store: SqlRecordStore = Depends(get_store)):
    return rooms.create_room(store, payload.room_number, payload.room_type, price=payload.price, floor=payload.floor)

@router.get("/{room_id}", response_model=RoomDetailOut)
def api_room(room_id: int, user: User = Depends(require_user), store: SqlRecordStore = Depends(get_store)):
    room = rooms.get_room(store, room_id)
    occupants = aggregator.current_occupants(store, room.id)
    item = rooms.RoomOccupancy(room=room, current_occupants=len(occupants), allowed_statuses=room_status.allowed_targets(room.status))
    data = _list_row(item)
    data["occupants"] = [OccupantOut.model_validate(t).model_dump() for t in occupants]
    return data

@router.patch("/{room_id}", response_model=RoomOut)
def api_update_room(room_id: int, payload: RoomUpdateIn, user: User = Depends(require_manager), store: SqlRecordStore = Depends(get_store)):
    return rooms.update_room(store, room_id, price=payload.price, floor=payload.floor)

@router.post("/{room_id}/status", response_model=RoomOut)
def api_set_room_status(room_id: int, payload: StatusIn, user: User = Depends(require_manager), store: SqlRecordStore = Depends(get_store)):
    return room_status.set_room_status(store, room_id, payload.status)

@router.get("/{room_id}/occupancy", response_model=OccupancyCountOut)
def api_room_occupancy(room_id: int, user: User = Depends(require_user), store: SqlRecordStore = Depends(get_store)):
    rooms.get_room(store, room_id)
    return {
        "room_id": room_id,
        "current_occupants": aggregator.current_occupant_count(store, room_id),
        "capacity": aggregator.capacity_of(store, room_id),
    }

# ==== Admission ====

@router.post("/{room_id}/tenants", response_model=AdmissionOut, status_code=201)
def api_admit_tenant(room_id: int, payload: TenantIn, user: User = Depends(require_manager), store: SqlRecordStore = Depends(get_store)):
    admission = admit_tenant(store, room_id, payload.to_draft())
    return {"tenant": admission.tenant, "occupancy": admission.occupancy}
