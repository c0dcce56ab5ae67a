import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from blooms.auth.jwt_handler import TokenIssuer, get_token_issuer
from blooms.auth.password import PasswordHasher, get_password_hasher
from blooms.core.exceptions import ForbiddenError, UnauthorizedError
from blooms.database import get_db
from blooms.models.user import User, UserRole
from blooms.repositories.user_store import UserStore
from blooms.services.auth_service import ACCOUNT_DEACTIVATED_MESSAGE, AuthService

security = HTTPBearer(auto_error=False)


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_auth_service(
    store: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthService:
    return AuthService(store, hasher, token_issuer)


def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> dict:
    if credentials is None:
        raise UnauthorizedError("Token required")
    try:
        return token_issuer.decode(credentials.credentials)
    except jwt.PyJWTError as exc:
        raise UnauthorizedError("Invalid or expired token") from exc


def get_current_user(
    claims: dict = Depends(get_token_claims),
    store: UserStore = Depends(get_user_store),
) -> User:
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise UnauthorizedError("Invalid token subject") from exc

    user = store.get_by_id(user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    if not user.is_active:
        raise UnauthorizedError(ACCOUNT_DEACTIVATED_MESSAGE)
    return user


def require_role(minimum: UserRole):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not UserRole(current_user.role).at_least(minimum):
            raise ForbiddenError("Insufficient permissions")
        return current_user

    return dependency
