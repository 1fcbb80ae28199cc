"""Password hashing, JWT handling, and credential lookups."""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import get_settings
from .models import RoleEnum, User

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
settings = get_settings()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_for(user: User) -> str:
    return create_access_token({"sub": user.id, "role": user.role.value})


def decode_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user: Optional[User] = db.query(User).filter(User.email == email, User.is_active.is_(True)).first()
    if not user or not user.hashed_password or not verify_password(password, user.hashed_password):
        return None
    return user


def authenticate_by_phone(db: Session, name: str, phone: str) -> Optional[User]:
    """Look up a guest account by the name and phone number they booked with.

    Name and phone are not a secret, so only plain user accounts can sign in
    this way; administrators must use their password.
    """

    return (
        db.query(User)
        .filter(
            User.name == name,
            User.phone == phone,
            User.role == RoleEnum.USER,
            User.is_active.is_(True),
        )
        .first()
    )
