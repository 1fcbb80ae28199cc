from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from .. import auth
from ..database import get_db
from ..deps import get_current_user
from ..models import RoleEnum, User
from ..rate_limit import AUTH_LIMIT, limiter
from ..schemas import PhoneLoginRequest, Token, UserCreate, UserRead, UserUpdate

router = APIRouter(prefix="/auth", tags=["auth"])


def _email_taken(db: Session, email: str, exclude_id: str | None = None) -> bool:
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return db.query(query.exists()).scalar()


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
def register_user(request: Request, user_in: UserCreate, db: Session = Depends(get_db)) -> User:
    if _email_taken(db, user_in.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    user = User(
        name=user_in.name,
        email=user_in.email,
        phone=user_in.phone,
        hashed_password=auth.get_password_hash(user_in.password),
        role=RoleEnum.USER,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.post("/login", response_model=Token)
@limiter.limit(AUTH_LIMIT)
def login(request: Request, form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)) -> Token:
    user = auth.authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return Token(access_token=auth.token_for(user))


@router.post("/login/phone", response_model=Token)
@limiter.limit(AUTH_LIMIT)
def login_with_phone(request: Request, credentials: PhoneLoginRequest, db: Session = Depends(get_db)) -> Token:
    user = auth.authenticate_by_phone(db, credentials.name, credentials.phone)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return Token(access_token=auth.token_for(user))


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.put("/me", response_model=UserRead)
@limiter.limit(AUTH_LIMIT)
def update_me(
    request: Request,
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    if user_update.email and _email_taken(db, user_update.email, exclude_id=current_user.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    if user_update.name:
        current_user.name = user_update.name
    if user_update.email:
        current_user.email = user_update.email
    if user_update.phone is not None:
        current_user.phone = user_update.phone or None
    if user_update.password:
        current_user.hashed_password = auth.get_password_hash(user_update.password)

    db.commit()
    db.refresh(current_user)
    return current_user


@router.post("/logout")
def logout(_: User = Depends(get_current_user)) -> dict[str, str]:
    # Tokens are stateless; the client discards its copy.
    return {"detail": "Logged out successfully"}
