import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from blooms.core.exceptions import ConflictError
from blooms.models.user import User, utcnow

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"


class UserStore:
    """Persisted user records, one committed row per ``save``.

    Email uniqueness is enforced by the table's unique constraint, so a
    duplicate insert that races past ``exists_by_email`` still surfaces as a
    ``ConflictError`` instead of a second row.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def exists_by_email(self, email: str) -> bool:
        return self.db.query(User.id).filter(User.email == email).first() is not None

    def get_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def save(self, user: User) -> User:
        now = utcnow()
        if user.id is None:
            user.created_at = now
        user.updated_at = now

        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.info("Rejected duplicate email on save: %s", user.email)
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from exc
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(user)
        return user
