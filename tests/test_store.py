"""Tests for the SQLAlchemy record store."""

from datetime import date

import pytest

from dormstay.errors import StoreError
from dormstay.models import Occupancy, Room, RoomStatus, Tenant


class TestSqlRecordStore:
    def test_conditional_update(self, store, make_room):
        room = make_room("101")

        assert store.update(Room, room.id, {"floor": 2}, expect={"status": RoomStatus.OCCUPIED}) is None
        assert store.get(Room, room.id).floor == 1

        updated = store.update(Room, room.id, {"floor": 2}, expect={"status": RoomStatus.VACANT})
        assert updated.floor == 2

    def test_update_missing_row(self, store):
        assert store.update(Room, 9999, {"floor": 2}) is None

    def test_query_filters_and_order(self, store, make_room):
        for number in ("103", "101", "102"):
            make_room(number)
        rows = store.query(Room, {"room_number": ["101", "103"]}, order_by=("-room_number",))
        assert [r.room_number for r in rows] == ["103", "101"]
        assert store.count(Room) == 3

    def test_none_filter_is_null_check(self, store):
        store.insert(Tenant, {"first_name": "A", "last_name": "B"})
        assert store.count(Tenant, {"primary_tenant_id": None}) == 1

    def test_delete(self, store, make_room):
        room = make_room("104")
        assert store.delete(Room, room.id) is True
        assert store.delete(Room, room.id) is False
        assert store.get(Room, room.id) is None

    def test_one_current_occupancy_per_tenant(self, store, make_room):
        """A second current row for the same tenant trips the partial unique index."""
        room = make_room("105")
        tenant = store.insert(Tenant, {"first_name": "A", "last_name": "B"})
        row = {"tenant_id": tenant.id, "room_id": room.id, "check_in_date": date.today(), "is_current": True}
        store.insert(Occupancy, row)

        with pytest.raises(StoreError):
            store.insert(Occupancy, row)

        # History rows are unrestricted
        store.insert(Occupancy, dict(row, is_current=False))
        assert store.count(Occupancy, {"tenant_id": tenant.id}) == 2
