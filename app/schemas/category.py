from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

class CategoryCreate(BaseModel):
    """Schema for creating a category. A missing title is reported as a 400."""
    title: Optional[str] = Field(default=None, min_length=3, max_length=100)

class SubCategoryCreate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=100)

class SubCategory(BaseModel):
    id: int
    category_id: int
    title: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class Category(BaseModel):
    id: int
    title: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class CategoryWithSubCategories(Category):
    sub_categories: List[SubCategory] = Field(default_factory=list)
