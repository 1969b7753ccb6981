from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from core.roles import Role
import phonenumbers
import re


PASSWORD_PATTERN = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$')


def validate_password_strength(value: str) -> str:
    """
    Password must be at least 8 characters and contain:
    - At least one uppercase and one lowercase letter
    - At least one digit
    - At least one special character (@$!%*?&)
    """
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(
            'Password must be at least 8 characters long and contain at least 1 uppercase letter, '
            '1 lowercase letter, 1 number, and 1 special character (@$!%*?&)'
        )
    return value


def validate_phone_number(value: str | None) -> str | None:
    """
    Validates phone number format using Google's phonenumbers library.
    Accepts international format: +201234567890
    """
    if value is None:
        return value
    try:
        parsed = phonenumbers.parse(value, None)
        if not phonenumbers.is_valid_number(parsed):
            raise ValueError('Invalid phone number')

        return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)

    except phonenumbers.NumberParseException:
        raise ValueError('Phone number must include country code (e.g.: +966xxxxxxxxx, +20xxxxxxxxxx)')


class Principal(BaseModel):
    """The authenticated identity attached to a request."""
    model_config = ConfigDict(frozen=True)

    id: int
    role: Role

    @field_validator('role', mode='before')
    @classmethod
    def parse_role(cls, value):
        if isinstance(value, Role):
            return value
        try:
            return Role(value)
        except ValueError:
            raise ValueError(f'Unknown role: {value!r}')

    @property
    def is_admin(self) -> bool:
        return self.role.is_admin


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone_number: str | None = None
    role: Role


class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserSummary


class CreateUserRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    phone_number: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value):
        if not value.strip():
            raise ValueError('Name is required')
        return value.strip()

    @field_validator('phone_number')
    @classmethod
    def validate_phone(cls, value):
        return validate_phone_number(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        return validate_password_strength(value)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class VerifyOTPRequest(BaseModel):
    email: EmailStr
    otp: str

    @field_validator('otp')
    @classmethod
    def validate_otp(cls, value):
        if len(value) != 6 or not value.isdigit():
            raise ValueError('must be a 6-digit code')
        return value


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: str
    new_password: str

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, value):
        return validate_password_strength(value)
