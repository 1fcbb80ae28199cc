import os
from datetime import datetime
from decimal import Decimal
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_guesthouse.db")
os.environ.setdefault("RATE_LIMITING_ENABLED", "false")
os.environ.setdefault("LOG_DIR", "./logs")

from guesthouse.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from guesthouse.auth import get_password_hash, token_for  # noqa: E402
from guesthouse.database import Base, SessionLocal, engine  # noqa: E402
from guesthouse.main import app  # noqa: E402
from guesthouse.models import Booking, BookingStatus, RoleEnum, Room, User  # noqa: E402
from guesthouse.routers.rooms import room_list_cache  # noqa: E402

ADMIN_PASSWORD = "Admin@123"
USER_PASSWORD = "Passw0rd!"


@pytest.fixture(autouse=True, scope="function")
def _create_test_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    room_list_cache.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


def _make_user(db, name: str, email: str, password: str, role: RoleEnum, phone: str | None = None) -> User:
    user = User(name=name, email=email, phone=phone, hashed_password=get_password_hash(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def admin_user(db_session) -> User:
    return _make_user(db_session, "Roomie Admin", "admin@roomie.com", ADMIN_PASSWORD, RoleEnum.ADMIN)


@pytest.fixture()
def guest_user(db_session) -> User:
    return _make_user(db_session, "Jane Guest", "jane@example.com", USER_PASSWORD, RoleEnum.USER, phone="+254700000001")


@pytest.fixture()
def other_user(db_session) -> User:
    return _make_user(db_session, "Other Guest", "other@example.com", USER_PASSWORD, RoleEnum.USER)


@pytest.fixture()
def admin_headers(admin_user) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(admin_user)}"}


@pytest.fixture()
def user_headers(guest_user) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(guest_user)}"}


@pytest.fixture()
def other_headers(other_user) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(other_user)}"}


@pytest.fixture()
def make_room(db_session) -> Callable[..., Room]:
    def factory(name: str = "Garden Room", price: str = "1000.00", capacity: int = 2, is_active: bool = True) -> Room:
        room = Room(
            name=name,
            description=f"{name} with a view",
            capacity=capacity,
            price=Decimal(price),
            is_active=is_active,
        )
        db_session.add(room)
        db_session.commit()
        db_session.refresh(room)
        return room

    return factory


@pytest.fixture()
def make_booking(db_session) -> Callable[..., Booking]:
    def factory(
        room: Room,
        check_in: datetime,
        check_out: datetime,
        status: BookingStatus = BookingStatus.CONFIRMED,
        user: User | None = None,
    ) -> Booking:
        booking = Booking(
            room_id=room.id,
            user_id=user.id if user else None,
            check_in=check_in,
            check_out=check_out,
            status=status,
            total_price=room.price,
            reserver_name="Existing Guest",
            reserver_phone="+254700000099",
            cancellation_reason="changed plans" if status == BookingStatus.CANCELLED else None,
        )
        db_session.add(booking)
        db_session.commit()
        db_session.refresh(booking)
        return booking

    return factory
