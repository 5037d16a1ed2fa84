from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# bcrypt only reads the first 72 bytes of a password and refuses longer input.
MAX_PASSWORD_BYTES = 72


# --- Auth ---

class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=255)
    confirm_password: str = Field(alias="confirmPassword", max_length=255)
    model_config = ConfigDict(populate_by_name=True)

    @field_validator("password")
    @classmethod
    def _fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    username: str = Field(max_length=100)
    password: str = Field(max_length=255)


class LoginResponse(BaseModel):
    id: int
    username: str


class SessionClaims(BaseModel):
    """Identity asserted by a verified session token."""

    id: int
    username: str
    iat: int
    exp: int


# --- User ---

class UserResponse(BaseModel):
    id: int
    username: str
    name: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    id: int
    name: str | None = Field(None, max_length=150)


# --- Contact ---

class ContactRequest(BaseModel):
    name: str = Field("", max_length=200)
    email: EmailStr | None = None
    message: str = Field("", max_length=10000)

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


# --- Content items (Post / Project) ---

class AuthorRef(BaseModel):
    username: str


class ContentResponse(BaseModel):
    id: int
    title: str
    summary: str
    content: str
    cover: str | None
    author_id: int
    author: AuthorRef | None = None
    created_at: datetime
    updated_at: datetime | None = None


class SuccessResponse(BaseModel):
    success: bool = True
