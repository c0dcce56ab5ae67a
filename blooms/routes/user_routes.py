import re

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator, model_validator

from blooms.auth.dependencies import get_auth_service, get_current_user, require_role
from blooms.core.responses import success_response
from blooms.models.user import User, UserRole
from blooms.routes.auth_routes import MAX_NAME_LENGTH, normalize_email
from blooms.services.auth_service import AuthService

router = APIRouter(tags=['users'])

PHONE_PATTERN = re.compile(r'^[0-9+\-\s()]+$')
MAX_PHONE_LENGTH = 20


class UpdateProfileRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return value
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required')
        if len(normalized) > MAX_NAME_LENGTH:
            raise ValueError(f'Name must be {MAX_NAME_LENGTH} characters or fewer')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return normalize_email(value)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        if value is None:
            return value
        normalized = value.strip()
        if not PHONE_PATTERN.match(normalized) or len(normalized) > MAX_PHONE_LENGTH:
            raise ValueError('Please provide a valid phone number')
        return normalized

    @field_validator('address')
    @classmethod
    def validate_address(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return value.strip() or None

    @model_validator(mode='after')
    def require_any_field(self) -> 'UpdateProfileRequest':
        if all(getattr(self, field) is None for field in ('name', 'email', 'phone', 'address')):
            raise ValueError('No fields to update')
        return self


class UpdateUserStatusRequest(BaseModel):
    is_active: bool


@router.put('/profile')
def update_profile(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    user = auth_service.update_profile(
        current_user,
        name=data.name,
        email=data.email,
        phone=data.phone,
        address=data.address,
    )
    return success_response({'user': user}, message='Profile updated successfully')


@router.patch('/{user_id}/status')
def update_user_status(
    user_id: int,
    data: UpdateUserStatusRequest,
    current_user: User = Depends(require_role(UserRole.admin)),
    auth_service: AuthService = Depends(get_auth_service),
):
    user = auth_service.set_active(current_user, user_id, data.is_active)
    message = 'User activated successfully' if data.is_active else 'User deactivated successfully'
    return success_response({'user': user}, message=message)
