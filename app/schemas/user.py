from pydantic import BaseModel, EmailStr, field_validator, ConfigDict, model_validator
from typing import Optional, Any
from datetime import datetime

from app.core.constants import RoleEnum

class UserBase(BaseModel):
    """Base user schema with common fields."""
    name: str
    email: EmailStr
    avatar: Optional[str] = None

class UserCreate(UserBase):
    role: RoleEnum = RoleEnum.USER

    model_config = ConfigDict(use_enum_values=True)

class UserUpdate(BaseModel):
    """Schema for updating a user's profile."""
    name: Optional[str] = None
    avatar: Optional[str] = None

    @field_validator("name")
    def not_empty(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v

    @model_validator(mode='before')
    @classmethod
    def at_least_one_value(cls, data: Any):
        if isinstance(data, dict) and not any(data.values()):
            raise ValueError("At least one field must be provided for update")
        return data

class User(UserBase):
    """Main user schema for reading user data."""
    id: int
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

class UserSummary(BaseModel):
    """Public author/asker card embedded in course content."""
    id: int
    name: Optional[str] = None
    avatar: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)
