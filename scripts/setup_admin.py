#!/usr/bin/env python3
"""Create the configured administrator account if it does not exist yet."""
import logging

from guesthouse.auth import get_password_hash
from guesthouse.config import get_settings
from guesthouse.database import Base, SessionLocal, engine
from guesthouse.models import RoleEnum, User

logger = logging.getLogger("setup_admin")


def setup_admin() -> User:
    settings = get_settings()
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        existing = db.query(User).filter(User.email == settings.admin_email).first()
        if existing:
            logger.info("Admin user %s already exists", settings.admin_email)
            return existing

        admin = User(
            name=settings.admin_name,
            email=settings.admin_email,
            hashed_password=get_password_hash(settings.admin_password),
            role=RoleEnum.ADMIN,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info("Admin user %s created (id=%s)", admin.email, admin.id)
        return admin


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
    setup_admin()
