from typing import List, Optional

from circuitbreaker import circuit
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session, selectinload

from ..cache import ListingCache
from ..config import get_settings
from ..database import get_db
from ..deps import require_admin
from ..errors import NotFoundError, ValidationError
from ..models import Facility, Room, User
from ..rate_limit import ADMIN_WRITE_LIMIT, PUBLIC_READ_LIMIT, limiter
from ..schemas import RoomCreate, RoomRead, RoomUpdate

router = APIRouter(prefix="/rooms", tags=["rooms"])

ROOMS = "rooms"
room_list_cache: ListingCache[List[dict]] = ListingCache(ttl=get_settings().room_cache_ttl)


def _active_room(db: Session, room_id: str) -> Room:
    room = (
        db.query(Room)
        .options(selectinload(Room.facilities))
        .filter(Room.id == room_id, Room.is_active.is_(True))
        .first()
    )
    if not room:
        raise NotFoundError("room")
    return room


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(Room).filter(Room.name == name)
    if exclude_id is not None:
        query = query.filter(Room.id != exclude_id)
    if query.first():
        raise ValidationError("Room name already exists")


def _resolve_facilities(db: Session, facility_ids: List[str]) -> List[Facility]:
    wanted = set(facility_ids)
    if not wanted:
        return []
    facilities = db.query(Facility).filter(Facility.id.in_(wanted), Facility.is_active.is_(True)).all()
    missing = wanted - {facility.id for facility in facilities}
    if missing:
        raise ValidationError(f"Unknown facilities: {', '.join(sorted(missing))}")
    return facilities


@router.get("", response_model=List[RoomRead])
@circuit(failure_threshold=5, recovery_timeout=60)
def list_rooms(
    request: Request,
    min_capacity: Optional[int] = None,
    db: Session = Depends(get_db),
) -> List[dict]:
    cached = room_list_cache.get(ROOMS, min_capacity)
    if cached is not None:
        return cached

    query = db.query(Room).options(selectinload(Room.facilities)).filter(Room.is_active.is_(True))
    if min_capacity:
        query = query.filter(Room.capacity >= min_capacity)
    rooms = [RoomRead.model_validate(room).model_dump() for room in query.order_by(Room.name).all()]
    room_list_cache.set(ROOMS, min_capacity, value=rooms)
    return rooms


@router.get("/{room_id}", response_model=RoomRead)
@limiter.limit(PUBLIC_READ_LIMIT)
def get_room(request: Request, room_id: str, db: Session = Depends(get_db)) -> Room:
    return _active_room(db, room_id)


@router.post("", response_model=RoomRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(ADMIN_WRITE_LIMIT)
def create_room(
    request: Request,
    room_in: RoomCreate,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Room:
    _ensure_unique_name(db, room_in.name)
    room = Room(**room_in.model_dump(exclude={"facility_ids"}))
    room.facilities = _resolve_facilities(db, room_in.facility_ids)
    db.add(room)
    db.commit()
    db.refresh(room)
    room_list_cache.invalidate(ROOMS)
    return room


@router.put("/{room_id}", response_model=RoomRead)
@limiter.limit(ADMIN_WRITE_LIMIT)
def update_room(
    request: Request,
    room_id: str,
    room_update: RoomUpdate,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Room:
    room = db.get(Room, room_id)
    if not room:
        raise NotFoundError("room")

    data = room_update.model_dump(exclude_unset=True, exclude={"facility_ids"})
    if data.get("name") and data["name"] != room.name:
        _ensure_unique_name(db, data["name"], exclude_id=room.id)
    for key, value in data.items():
        if value is not None:
            setattr(room, key, value)
    if room_update.facility_ids is not None:
        room.facilities = _resolve_facilities(db, room_update.facility_ids)

    db.commit()
    db.refresh(room)
    room_list_cache.invalidate(ROOMS)
    return room


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(ADMIN_WRITE_LIMIT)
def delete_room(
    request: Request,
    room_id: str,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> None:
    room = db.get(Room, room_id)
    if not room:
        raise NotFoundError("room")
    # Bookings keep referencing the room, so it is only deactivated.
    room.is_active = False
    db.commit()
    room_list_cache.invalidate(ROOMS)
