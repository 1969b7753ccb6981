from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from core.roles import Role, ADMIN_ROLES
from schemas.auth_schemas import validate_password_strength, validate_phone_number


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone_number: Optional[str] = None


class AdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: Role


class UpdateCustomerRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = None
    password: Optional[str] = None

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        if value is None:
            return value
        return validate_password_strength(value)

    @field_validator('phone_number')
    @classmethod
    def validate_phone(cls, value):
        return validate_phone_number(value)


def _admin_role(value):
    role = Role(value)
    if role not in ADMIN_ROLES:
        raise ValueError('Role must be admin or super_admin')
    return role


class CreateAdminRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    role: Role = Role.ADMIN

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        return validate_password_strength(value)

    @field_validator('role', mode='before')
    @classmethod
    def validate_role(cls, value):
        return _admin_role(value)


class UpdateAdminRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[Role] = None

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        if value is None:
            return value
        return validate_password_strength(value)

    @field_validator('role', mode='before')
    @classmethod
    def validate_role(cls, value):
        if value is None:
            return value
        return _admin_role(value)
