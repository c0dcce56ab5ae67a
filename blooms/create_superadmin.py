"""Create the superadmin account if it does not exist yet.

Usage:
    SUPERADMIN_PASSWORD=... python -m blooms.create_superadmin
"""
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blooms.auth.password import PasswordHasher
from blooms.core import config
from blooms.core.exceptions import ConflictError
from blooms.database import Base, SessionLocal, engine, ensure_user_schema
from blooms.models.user import User, UserRole
from blooms.repositories.user_store import UserStore

logger = logging.getLogger(__name__)


def create_superadmin(
    db: Session,
    name: str,
    email: str,
    password: str,
    hasher: PasswordHasher | None = None,
) -> tuple[User, bool]:
    """Return the superadmin and whether it was created by this call."""
    existing = (
        db.query(User)
        .filter((User.email == email) | (User.role == UserRole.superadmin))
        .first()
    )
    if existing is not None:
        return existing, False

    hasher = hasher or PasswordHasher()
    superadmin = User(
        name=name,
        email=email,
        password=hasher.hash(password),
        role=UserRole.superadmin,
        is_active=True,
    )
    return UserStore(db).save(superadmin), True


def main() -> None:
    logging.basicConfig(level=config.LOG_LEVEL, format='%(levelname)s %(message)s')

    if not config.SUPERADMIN_PASSWORD:
        print("SUPERADMIN_PASSWORD must be set.", file=sys.stderr)
        sys.exit(1)

    db = SessionLocal()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_user_schema()
        superadmin, created = create_superadmin(
            db,
            name=config.SUPERADMIN_NAME,
            email=config.SUPERADMIN_EMAIL,
            password=config.SUPERADMIN_PASSWORD,
        )
    except ConflictError:
        print("Superadmin already exists in database")
        return
    except ValueError as exc:
        print(f"Invalid SUPERADMIN_PASSWORD: {exc}", file=sys.stderr)
        sys.exit(1)
    except SQLAlchemyError:
        logger.exception("Error creating superadmin")
        sys.exit(1)
    finally:
        db.close()

    if created:
        print(f"Superadmin created: {superadmin.email} (id {superadmin.id})")
    else:
        print(f"Superadmin already exists: {superadmin.email} (id {superadmin.id}, role {superadmin.role.value})")


if __name__ == "__main__":
    main()
