from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import require_admin
from ..errors import NotFoundError, ValidationError
from ..models import Facility, User
from ..rate_limit import ADMIN_WRITE_LIMIT, PUBLIC_READ_LIMIT, limiter
from ..schemas import FacilityCreate, FacilityRead, FacilityUpdate
from .rooms import ROOMS, room_list_cache

router = APIRouter(prefix="/facilities", tags=["facilities"])

FACILITIES = "facilities"


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(Facility).filter(Facility.name == name)
    if exclude_id is not None:
        query = query.filter(Facility.id != exclude_id)
    if query.first():
        raise ValidationError("Facility name already exists")


def _invalidate_listings() -> None:
    # Room listings embed their facilities.
    room_list_cache.invalidate(FACILITIES)
    room_list_cache.invalidate(ROOMS)


@router.get("", response_model=List[FacilityRead])
@limiter.limit(PUBLIC_READ_LIMIT)
def list_facilities(request: Request, db: Session = Depends(get_db)) -> List[dict]:
    cached = room_list_cache.get(FACILITIES)
    if cached is not None:
        return cached
    facilities = db.query(Facility).filter(Facility.is_active.is_(True)).order_by(Facility.name).all()
    payload = [FacilityRead.model_validate(facility).model_dump() for facility in facilities]
    room_list_cache.set(FACILITIES, value=payload)
    return payload


@router.get("/{facility_id}", response_model=FacilityRead)
@limiter.limit(PUBLIC_READ_LIMIT)
def get_facility(request: Request, facility_id: str, db: Session = Depends(get_db)) -> Facility:
    facility = db.query(Facility).filter(Facility.id == facility_id, Facility.is_active.is_(True)).first()
    if not facility:
        raise NotFoundError("facility")
    return facility


@router.post("", response_model=FacilityRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(ADMIN_WRITE_LIMIT)
def create_facility(
    request: Request,
    facility_in: FacilityCreate,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Facility:
    _ensure_unique_name(db, facility_in.name)
    facility = Facility(**facility_in.model_dump())
    db.add(facility)
    db.commit()
    db.refresh(facility)
    _invalidate_listings()
    return facility


@router.put("/{facility_id}", response_model=FacilityRead)
@limiter.limit(ADMIN_WRITE_LIMIT)
def update_facility(
    request: Request,
    facility_id: str,
    facility_update: FacilityUpdate,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Facility:
    facility = db.get(Facility, facility_id)
    if not facility:
        raise NotFoundError("facility")

    data = facility_update.model_dump(exclude_unset=True)
    if data.get("name") and data["name"] != facility.name:
        _ensure_unique_name(db, data["name"], exclude_id=facility.id)
    if data.get("name"):
        facility.name = data["name"]
    if "description" in data:
        facility.description = data["description"]
    if "icon" in data:
        facility.icon = data["icon"]

    db.commit()
    db.refresh(facility)
    _invalidate_listings()
    return facility


@router.delete("/{facility_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(ADMIN_WRITE_LIMIT)
def delete_facility(
    request: Request,
    facility_id: str,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> None:
    facility = db.get(Facility, facility_id)
    if not facility:
        raise NotFoundError("facility")
    facility.is_active = False
    db.commit()
    _invalidate_listings()
