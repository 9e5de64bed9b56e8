from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class LevelCreate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)

class Level(BaseModel):
    """Built-in levels have no id."""
    id: Optional[int] = None
    name: str
    is_builtin: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
