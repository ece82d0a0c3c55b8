"""User schemas for identity and profile responses."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class UserRead(BaseModel):
    id: int
    username: str
    company_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class UpdateProfileRequest(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
