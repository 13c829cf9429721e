from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(min_length=1, max_length=20)
    password: str = Field(min_length=8)
    password_confirmation: str
    role: Literal["buyer", "shop", "driver", "technician"]

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError("Password confirmation does not match")
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class ProfileUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=20)
    city: Optional[str] = Field(default=None, max_length=255)
    region: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = None


class PasswordChange(BaseModel):
    current_password: str
    password: str = Field(min_length=8)
    password_confirmation: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError("Password confirmation does not match")
        return self


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    role: str
    city: Optional[str] = None
    region: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    redirect_to: str


class RegisterResponse(TokenResponse):
    user: UserResponse


class MessageResponse(BaseModel):
    success: bool = True
    message: str
