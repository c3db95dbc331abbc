from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.models.enums import UserRole

EMAIL_PATTERN = r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$"


class User(BaseModel):
    """A user account as returned by the API. The password hash never leaves storage."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: UserRole = UserRole.USER
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserCreate(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=254)
    password: str = Field(min_length=4)
    role: UserRole = UserRole.USER

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value


class UserUpdate(BaseModel):
    email: str | None = Field(default=None, pattern=EMAIL_PATTERN, max_length=254)
    password: str | None = Field(default=None, min_length=4)
    role: UserRole | None = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value
