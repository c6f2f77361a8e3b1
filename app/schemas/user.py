import re
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, StringConstraints

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=100)]
Address = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=255)]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^\d{10,11}$")]

# bcrypt input limit
PASSWORD_MAX_BYTES = 72

PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter."),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter."),
    (re.compile(r"[0-9]"), "Password must contain at least one digit."),
    (re.compile(r"[^a-zA-Z0-9]"), "Password must contain at least one special character."),
)


def check_password_strength(password: str) -> str:
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long.")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError("Password must be at most 72 bytes long.")
    for pattern, message in PASSWORD_RULES:
        if not pattern.search(password):
            raise ValueError(message)
    return password


Password = Annotated[str, AfterValidator(check_password_strength)]


class UserBase(BaseModel):
    name: Name
    email: EmailStr
    phone: Phone
    address: Address


class UserCreate(UserBase):
    password: Password


class UserUpdate(BaseModel):
    name: Optional[Name] = None
    email: Optional[EmailStr] = None
    phone: Optional[Phone] = None
    address: Optional[Address] = None
    password: Optional[Password] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class OwnedProductSummary(BaseModel):
    id: str
    title: str
    price: Decimal
    image_url: str

    model_config = ConfigDict(from_attributes=True)


class UserRead(UserBase):
    """Sanitized user: never carries the password hash."""

    id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserDetail(UserRead):
    products: List[OwnedProductSummary] = []


class UserDeleted(BaseModel):
    message: str
    user: UserRead


class LoginResponse(BaseModel):
    message: str
    user: UserRead
    access_token: str
    token_type: str = "bearer"
