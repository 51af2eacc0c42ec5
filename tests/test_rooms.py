"""Tests for room creation, edits and the occupancy listing."""

import pytest

from dormstay.errors import DuplicateRoomNumber, RoomLookupFailed, ValidationFailed
from dormstay.models import Room, RoomStatus, RoomType
from dormstay.services import rooms, tenants
from dormstay.services.allocator import admit_tenant


class TestCreateRoom:
    def test_capacity_follows_room_type(self, store):
        single = rooms.create_room(store, "101", RoomType.STANDARD_SINGLE)
        double = rooms.create_room(store, "102", "Standard Double")
        assert single.capacity == 1
        assert double.capacity == 2
        assert single.status == RoomStatus.VACANT

    def test_defaults(self, store):
        room = rooms.create_room(store, "103", RoomType.STANDARD_SINGLE)
        assert float(room.price) == 3500
        assert room.floor == 1

    def test_non_digits_are_stripped(self, store):
        room = rooms.create_room(store, "A-2 05", RoomType.STANDARD_SINGLE)
        assert room.room_number == "205"

    def test_number_without_digits(self, store):
        with pytest.raises(ValidationFailed):
            rooms.create_room(store, "abc", RoomType.STANDARD_SINGLE)

    @pytest.mark.parametrize("given,stored", [(0, 1), (3, 3), (9, 4)])
    def test_floor_is_clamped(self, store, given, stored):
        assert rooms.create_room(store, "30" + str(given), RoomType.STANDARD_SINGLE, floor=given).floor == stored

    def test_unknown_room_type(self, store):
        with pytest.raises(ValidationFailed):
            rooms.create_room(store, "104", "Penthouse")

    def test_negative_price(self, store):
        with pytest.raises(ValidationFailed):
            rooms.create_room(store, "105", RoomType.STANDARD_SINGLE, price=-1)

    def test_duplicate_number(self, store):
        rooms.create_room(store, "106", RoomType.STANDARD_SINGLE)
        with pytest.raises(DuplicateRoomNumber):
            rooms.create_room(store, "106", RoomType.STANDARD_DOUBLE)


class TestUpdateRoom:
    def test_price_and_floor(self, store, make_room):
        room = make_room("201")
        updated = rooms.update_room(store, room.id, price=4200, floor=7)
        assert float(updated.price) == 4200
        assert updated.floor == 4
        assert updated.capacity == 2

    def test_nothing_to_change(self, store, make_room):
        room = make_room("202")
        assert rooms.update_room(store, room.id).id == room.id

    def test_missing_room(self, store):
        with pytest.raises(RoomLookupFailed):
            rooms.update_room(store, 9999, price=1000)


class TestListRooms:
    def test_counts_and_fullness(self, store, make_room, draft, locks):
        single = make_room("301", RoomType.STANDARD_SINGLE)
        double = make_room("302", RoomType.STANDARD_DOUBLE)
        admit_tenant(store, single.id, draft(), locks=locks)
        admit_tenant(store, double.id, draft("A", "B"), locks=locks)

        listing = {item.room.room_number: item for item in rooms.list_rooms(store)}

        assert listing["301"].current_occupants == 1
        assert listing["301"].is_full is True
        assert listing["302"].current_occupants == 1
        assert listing["302"].is_full is False

    def test_moved_out_tenants_are_not_counted(self, store, make_room, draft, locks):
        room = make_room("303", RoomType.STANDARD_SINGLE)
        admission = admit_tenant(store, room.id, draft(), locks=locks)
        tenants.move_out(store, admission.tenant.id)

        (item,) = rooms.list_rooms(store)
        assert item.current_occupants == 0
        assert item.is_full is False

    def test_ordered_by_number(self, store, make_room):
        for number in ("402", "401", "403"):
            make_room(number)
        assert [i.room.room_number for i in rooms.list_rooms(store)] == ["401", "402", "403"]

    def test_numbers_sort_by_value(self, store, make_room):
        """Room 90 comes before 201, which comes before 1001."""
        for number in ("201", "1001", "90"):
            make_room(number)
        assert [i.room.room_number for i in rooms.list_rooms(store)] == ["90", "201", "1001"]

    def test_filters(self, store, make_room):
        make_room("501", RoomType.STANDARD_SINGLE)
        other = make_room("502", RoomType.STANDARD_DOUBLE)
        store.update(Room, other.id, {"status": RoomStatus.MAINTENANCE})

        assert [i.room.room_number for i in rooms.list_rooms(store, search="01")] == ["501"]
        assert [i.room.room_number for i in rooms.list_rooms(store, status="MAINTENANCE")] == ["502"]
        assert [i.room.room_number for i in rooms.list_rooms(store, room_type="Standard Single")] == ["501"]

    def test_allowed_statuses(self, store, make_room):
        make_room("601")
        (item,) = rooms.list_rooms(store)
        assert item.allowed_statuses == [RoomStatus.OCCUPIED, RoomStatus.MAINTENANCE]

    def test_bad_filter(self, store):
        with pytest.raises(ValidationFailed):
            rooms.list_rooms(store, status="flooded")
