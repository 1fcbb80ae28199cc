from datetime import date, datetime
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, Request, status

from ..booking_manager import BookingManager
from ..deps import get_booking_manager, get_current_user, get_optional_user, require_admin
from ..errors import ValidationError
from ..models import Booking, BookingStatus, User
from ..rate_limit import ADMIN_WRITE_LIMIT, BOOKING_WRITE_LIMIT, PUBLIC_READ_LIMIT, limiter
from ..schemas import (
    AvailabilityRead,
    BookingCancel,
    BookingCreate,
    BookingRead,
    BookingStatusUpdate,
    to_naive_utc,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _require_range(check_in: datetime, check_out: datetime) -> None:
    if check_out <= check_in:
        raise ValidationError("Check-out date must be after check-in date")


@router.get("/availability", response_model=AvailabilityRead)
@limiter.limit(PUBLIC_READ_LIMIT)
def check_availability(
    request: Request,
    room_id: str = Query(...),
    check_in: Union[datetime, date] = Query(...),
    check_out: Union[datetime, date] = Query(...),
    manager: BookingManager = Depends(get_booking_manager),
) -> AvailabilityRead:
    check_in, check_out = to_naive_utc(check_in), to_naive_utc(check_out)
    _require_range(check_in, check_out)
    available = manager.check_availability(room_id, check_in, check_out)
    return AvailabilityRead(room_id=room_id, available=available)


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(BOOKING_WRITE_LIMIT)
def create_booking(
    request: Request,
    booking_in: BookingCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    manager: BookingManager = Depends(get_booking_manager),
) -> Booking:
    _require_range(booking_in.check_in, booking_in.check_out)
    return manager.create_booking(
        room_id=booking_in.room_id,
        check_in=booking_in.check_in,
        check_out=booking_in.check_out,
        reserver_name=booking_in.reserver_name,
        reserver_phone=booking_in.reserver_phone,
        special_requests=booking_in.special_requests,
        user_id=current_user.id if current_user else None,
    )


@router.get("/me", response_model=List[BookingRead])
def list_my_bookings(
    current_user: User = Depends(get_current_user),
    manager: BookingManager = Depends(get_booking_manager),
) -> List[Booking]:
    return manager.list_for_user(current_user.id)


@router.get("/admin", response_model=List[BookingRead])
def list_all_bookings(
    start_date: Optional[Union[datetime, date]] = None,
    end_date: Optional[Union[datetime, date]] = None,
    room_id: Optional[str] = None,
    user_id: Optional[str] = None,
    status: Optional[BookingStatus] = None,
    _: User = Depends(require_admin),
    manager: BookingManager = Depends(get_booking_manager),
) -> List[Booking]:
    return manager.list_bookings(
        start=to_naive_utc(start_date),
        end=to_naive_utc(end_date),
        room_id=room_id,
        user_id=user_id,
        status=status,
    )


@router.patch("/{booking_id}/status", response_model=BookingRead)
@limiter.limit(ADMIN_WRITE_LIMIT)
def update_booking_status(
    request: Request,
    booking_id: str,
    status_update: BookingStatusUpdate,
    _: User = Depends(require_admin),
    manager: BookingManager = Depends(get_booking_manager),
) -> Booking:
    return manager.set_status(booking_id, status_update.status, status_update.cancellation_reason)


@router.post("/{booking_id}/cancel", response_model=BookingRead)
@limiter.limit(BOOKING_WRITE_LIMIT)
def cancel_booking(
    request: Request,
    booking_id: str,
    cancel_in: BookingCancel,
    current_user: User = Depends(get_current_user),
    manager: BookingManager = Depends(get_booking_manager),
) -> Booking:
    return manager.cancel_by_owner(booking_id, current_user.id, cancel_in.reason)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(ADMIN_WRITE_LIMIT)
def delete_booking(
    request: Request,
    booking_id: str,
    _: User = Depends(require_admin),
    manager: BookingManager = Depends(get_booking_manager),
) -> None:
    manager.delete_booking(booking_id)
