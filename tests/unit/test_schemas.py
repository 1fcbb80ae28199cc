"""Unit tests for schema validation."""
from datetime import date, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from guesthouse.models import BookingStatus
from guesthouse.schemas import (
    BookingCreate,
    BookingStatusUpdate,
    RoomCreate,
    UserCreate,
    to_naive_utc,
)


def booking(**overrides) -> BookingCreate:
    data = {
        "room_id": "room-1",
        "check_in": "2024-01-05",
        "check_out": "2024-01-10",
        "reserver_name": "Jane",
        "reserver_phone": "+254700000001",
    }
    data.update(overrides)
    return BookingCreate(**data)


class TestInstantNormalization:
    def test_date_only_string_is_midnight(self):
        assert to_naive_utc("2024-01-05") == datetime(2024, 1, 5)

    def test_date_object_is_midnight(self):
        assert to_naive_utc(date(2024, 1, 5)) == datetime(2024, 1, 5)

    def test_none_passes_through(self):
        assert to_naive_utc(None) is None


class TestBookingSchemas:
    def test_date_only_values(self):
        created = booking()
        assert created.check_in == datetime(2024, 1, 5)
        assert created.check_out == datetime(2024, 1, 10)

    def test_aware_values_become_naive_utc(self):
        created = booking(check_in="2024-01-05T15:00:00+03:00", check_out="2024-01-06T09:00:00Z")
        assert created.check_in == datetime(2024, 1, 5, 12, 0)
        assert created.check_in.tzinfo is None
        assert created.check_out == datetime(2024, 1, 6, 9, 0)

    def test_reserver_fields_are_stripped_and_required(self):
        assert booking(reserver_name="  Jane  ").reserver_name == "Jane"
        with pytest.raises(ValidationError):
            booking(reserver_name="   ")
        with pytest.raises(ValidationError):
            BookingCreate(room_id="room-1", check_in="2024-01-05", check_out="2024-01-10", reserver_name="Jane")

    def test_special_requests_optional(self):
        assert booking().special_requests is None

    def test_status_update_accepts_known_statuses(self):
        assert BookingStatusUpdate(status="completed").status == BookingStatus.COMPLETED
        with pytest.raises(ValidationError):
            BookingStatusUpdate(status="archived")


class TestRoomSchemas:
    def test_room_create_valid(self):
        room = RoomCreate(name="Loft", description="Attic room", capacity=2, price="89.90")
        assert room.price == Decimal("89.90")
        assert room.facility_ids == []

    @pytest.mark.parametrize(
        "overrides",
        [{"capacity": 0}, {"price": "-0.01"}, {"price": "10.123"}, {"name": ""}],
    )
    def test_room_create_invalid(self, overrides):
        data = {"name": "Loft", "description": "Attic room", "capacity": 2, "price": "89.90"}
        data.update(overrides)
        with pytest.raises(ValidationError):
            RoomCreate(**data)


class TestUserSchemas:
    def test_user_create_valid(self):
        user = UserCreate(name="Jane", email="jane@example.com", password="secret1")
        assert user.phone is None

    def test_user_create_invalid_email(self):
        with pytest.raises(ValidationError):
            UserCreate(name="Jane", email="not-an-email", password="secret1")
