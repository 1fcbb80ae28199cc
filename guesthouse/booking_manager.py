"""Availability checks and conflict-free booking creation.

Every operation uses the same half-open overlap rule: an existing booking
``[a, b)`` conflicts with a requested ``[c, d)`` when ``a < d and b > c``,
so a guest may check in on the day the previous guest checks out.
Cancelled bookings never conflict.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Query, Session, selectinload

from .errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from .models import Booking, BookingStatus, Room

logger = logging.getLogger(__name__)

ONE_NIGHT = timedelta(days=1)


def nights_between(check_in: datetime, check_out: datetime) -> int:
    """Number of nights billed for a stay; partial days round up."""

    return math.ceil((check_out - check_in) / ONE_NIGHT)


class BookingManager:
    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = datetime.utcnow,
        notice_hours: int = 24,
    ) -> None:
        self.db = db
        self.clock = clock
        self.notice = timedelta(hours=notice_hours)

    def _overlapping(self, room_id: str, check_in: datetime, check_out: datetime) -> Query:
        return self.db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.status != BookingStatus.CANCELLED,
            Booking.check_in < check_out,
            Booking.check_out > check_in,
        )

    def check_availability(self, room_id: str, check_in: datetime, check_out: datetime) -> bool:
        overlap = self._overlapping(room_id, check_in, check_out)
        return not self.db.query(overlap.exists()).scalar()

    def _claim_room(self, room_id: str) -> Room:
        """Write-lock an active room for the rest of the transaction.

        The UPDATE takes the row lock on PostgreSQL and the database write
        lock on SQLite, so a concurrent creation for the same room waits
        here until this transaction ends and then sees its booking.
        """
        result = self.db.execute(
            update(Room)
            .where(Room.id == room_id, Room.is_active.is_(True))
            .values(booking_revision=Room.booking_revision + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("room")
        room = self.db.get(Room, room_id, populate_existing=True)
        if room is None:
            raise NotFoundError("room")
        return room

    def create_booking(
        self,
        room_id: str,
        check_in: datetime,
        check_out: datetime,
        reserver_name: str,
        reserver_phone: str,
        special_requests: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Booking:
        if not reserver_name.strip() or not reserver_phone.strip():
            raise ValidationError("Reserver name and phone are required")

        try:
            room = self._claim_room(room_id)

            conflict = self._overlapping(room_id, check_in, check_out).first()
            if conflict is not None:
                logger.info("Room %s unavailable %s..%s, conflicts with booking %s", room_id, check_in, check_out, conflict.id)
                raise ConflictError("Room is not available for the selected dates")

            nights = nights_between(check_in, check_out)
            if nights <= 0:
                raise ValidationError("Check-out must be at least one night after check-in")

            booking = Booking(
                room_id=room.id,
                user_id=user_id,
                check_in=check_in,
                check_out=check_out,
                status=BookingStatus.PENDING,
                total_price=room.price * nights,
                special_requests=special_requests,
                reserver_name=reserver_name,
                reserver_phone=reserver_phone,
            )
            self.db.add(booking)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info("Booking %s created for room %s (%d nights, total %s)", booking.id, room_id, nights, booking.total_price)
        return booking

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("booking")
        return booking

    def set_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        cancellation_reason: Optional[str] = None,
    ) -> Booking:
        booking = self.get_booking(booking_id)
        try:
            new_status = BookingStatus(new_status)
        except ValueError as exc:
            raise ValidationError("Invalid status") from exc
        reason = (cancellation_reason or "").strip()
        if new_status == BookingStatus.CANCELLED and not reason:
            raise ValidationError("Cancellation reason is required")

        booking.status = new_status
        booking.cancellation_reason = reason if new_status == BookingStatus.CANCELLED else None
        self.db.commit()
        self.db.refresh(booking)
        logger.info("Booking %s moved to %s", booking.id, new_status.value)
        return booking

    def cancel_by_owner(self, booking_id: str, user_id: str, reason: str) -> Booking:
        booking = self.get_booking(booking_id)
        if booking.user_id is None or booking.user_id != user_id:
            raise ForbiddenError("You can only cancel your own bookings")
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Cancellation reason is required")
        if booking.check_in - self.clock() <= self.notice:
            raise ValidationError(
                f"Too late to cancel: bookings can only be cancelled more than "
                f"{int(self.notice.total_seconds() // 3600)} hours before check-in"
            )

        booking.status = BookingStatus.CANCELLED
        booking.cancellation_reason = reason
        self.db.commit()
        self.db.refresh(booking)
        logger.info("Booking %s cancelled by its owner", booking.id)
        return booking

    def delete_booking(self, booking_id: str) -> None:
        booking = self.get_booking(booking_id)
        self.db.delete(booking)
        self.db.commit()
        logger.info("Booking %s deleted", booking_id)

    def list_for_user(self, user_id: str) -> List[Booking]:
        return (
            self.db.query(Booking)
            .options(selectinload(Booking.room))
            .filter(Booking.user_id == user_id)
            .order_by(Booking.check_in.desc())
            .all()
        )

    def list_bookings(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        room_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        query = self.db.query(Booking).options(selectinload(Booking.room), selectinload(Booking.user))
        if start is not None and end is not None:
            query = query.filter(Booking.check_in < end, Booking.check_out > start)
        if room_id:
            query = query.filter(Booking.room_id == room_id)
        if user_id:
            query = query.filter(Booking.user_id == user_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.check_in.desc()).all()
