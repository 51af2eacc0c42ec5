from .user import User, UserRole, MANAGER_ROLES
from .room import Room, RoomStatus, RoomType, ROOM_TYPE_CAPACITY
from .tenant import Tenant, ResidentKind
from .occupancy import Occupancy
