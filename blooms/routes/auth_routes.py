import re

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from blooms.auth.dependencies import get_auth_service, get_current_user, get_token_claims
from blooms.core.responses import success_response
from blooms.models.user import User
from blooms.services.auth_service import AuthService

router = APIRouter(tags=['auth'])

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MAX_EMAIL_LENGTH = 100
MAX_NAME_LENGTH = 100
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72


def normalize_email(value: str) -> str:
    # Case is preserved; stored emails compare case-sensitively.
    normalized = value.strip()
    if not EMAIL_PATTERN.match(normalized) or len(normalized) > MAX_EMAIL_LENGTH:
        raise ValueError('Please provide a valid email address')
    return normalized


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required')
        if len(normalized) > MAX_NAME_LENGTH:
            raise ValueError(f'Name must be {MAX_NAME_LENGTH} characters or fewer')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')
        # bcrypt only reads the first 72 bytes of a password.
        if len(value.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise ValueError(f'Password must be {MAX_PASSWORD_BYTES} bytes or fewer')
        return value


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required')
        return value


@router.post('/register')
def register(data: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = auth_service.register(data.name, data.email, data.password)
    return success_response(result, message='User registered successfully')


@router.post('/login')
def login(data: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = auth_service.login(data.email, data.password)
    return success_response(result, message='Login successful')


@router.get('/me')
def me(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    return success_response({'user': auth_service.get_current_user(current_user)})


@router.post('/logout', dependencies=[Depends(get_current_user)])
def logout():
    # Tokens are stateless; the client discards its copy.
    return success_response(message='Logged out successfully')


@router.post('/refresh')
def refresh(
    claims: dict = Depends(get_token_claims),
    auth_service: AuthService = Depends(get_auth_service),
):
    return success_response(auth_service.refresh(claims))
