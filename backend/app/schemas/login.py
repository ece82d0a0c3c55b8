"""Login request schema for user authentication."""

from pydantic import BaseModel, Field

from backend.app.schemas.user import UserRead


class LoginRequest(BaseModel):
    """Payload for login attempts."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
