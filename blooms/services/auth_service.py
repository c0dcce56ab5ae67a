"""Registration, login and session issuance.

``AuthService`` is built per request from its three collaborators: the
credential store, the password hasher and the token issuer. It holds no
state of its own between calls.
"""

import logging

from blooms.auth.jwt_handler import TokenIssuer
from blooms.auth.password import PasswordHasher
from blooms.core.exceptions import ConflictError, ForbiddenError, UnauthorizedError, UserNotFoundError
from blooms.models.user import User, UserRole, utcnow
from blooms.repositories.user_store import DUPLICATE_EMAIL_MESSAGE, UserStore
from blooms.schemas.user import to_user_view

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
EMAIL_TAKEN_MESSAGE = "Email is already taken"
ACCOUNT_DEACTIVATED_MESSAGE = (
    "Your account has been deactivated. Please contact support for assistance."
)


class AuthService:
    def __init__(self, store: UserStore, hasher: PasswordHasher, token_issuer: TokenIssuer):
        self.store = store
        self.hasher = hasher
        self.token_issuer = token_issuer

    def _issue_for(self, user: User) -> str:
        return self.token_issuer.issue(user.id, user.email, UserRole(user.role).value)

    def register(self, name: str, email: str, password: str) -> dict:
        """Create a customer account and sign it in.

        Raises:
            ConflictError: If the email is already registered, including when a
                concurrent registration wins the insert.
        """
        if self.store.exists_by_email(email):
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

        user = User(
            name=name,
            email=email,
            password=self.hasher.hash(password),
            role=UserRole.customer,
            is_active=True,
        )
        user = self.store.save(user)
        logger.info("Registered user %s (%s)", user.id, user.email)

        return {"token": self._issue_for(user), "user": to_user_view(user)}

    def login(self, email: str, password: str) -> dict:
        """Verify credentials and issue a token.

        Unknown email and wrong password fail with the same message. The
        account-state check runs only after the password is confirmed.
        """
        user = self.store.find_by_email(email)
        if user is None:
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

        if not self.hasher.verify(password, user.password):
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

        if not user.is_active:
            logger.info("Login refused for deactivated user %s", user.id)
            raise UnauthorizedError(ACCOUNT_DEACTIVATED_MESSAGE)

        user.last_login = utcnow()
        user = self.store.save(user)
        logger.info("Login: %s (%s)", user.email, user.id)

        return {"token": self._issue_for(user), "user": to_user_view(user)}

    def get_current_user(self, user: User) -> dict:
        return to_user_view(user)

    def refresh(self, claims: dict) -> dict:
        """Re-issue a token for the subject of an already verified token."""
        token = self.token_issuer.issue(int(claims["sub"]), claims.get("email"), claims.get("role"))
        return {"token": token}

    def set_active(self, actor: User, user_id: int, is_active: bool) -> dict:
        """Flip a user's kill-switch on behalf of an admin."""
        user = self.store.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        if user.id == actor.id:
            raise ForbiddenError("You cannot change the status of your own account")

        actor_role = UserRole(actor.role)
        if actor_role != UserRole.superadmin and UserRole(user.role).at_least(actor_role):
            raise ForbiddenError("Insufficient permissions")

        user.is_active = is_active
        user = self.store.save(user)
        logger.info(
            "User %s %s by %s",
            user.id,
            "activated" if is_active else "deactivated",
            actor.id,
        )
        return to_user_view(user)

    def update_profile(
        self,
        user: User,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
    ) -> dict:
        """Apply the caller's own profile edits. Fields left as ``None`` are unchanged.

        Raises:
            ConflictError: If ``email`` already belongs to another account.
        """
        if email is not None and email != user.email:
            owner = self.store.find_by_email(email)
            if owner is not None and owner.id != user.id:
                raise ConflictError(EMAIL_TAKEN_MESSAGE)
            user.email = email
        if name is not None:
            user.name = name
        if phone is not None:
            user.phone = phone
        if address is not None:
            user.address = address

        try:
            user = self.store.save(user)
        except ConflictError as exc:
            raise ConflictError(EMAIL_TAKEN_MESSAGE) from exc
        logger.info("Profile updated for user %s", user.id)
        return to_user_view(user)
