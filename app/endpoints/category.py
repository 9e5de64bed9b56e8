from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.models.user import User
from app.schemas.category import Category, CategoryCreate, CategoryWithSubCategories, SubCategory, SubCategoryCreate
from app.schemas.response import APIResponse
from app.services.category import category_service
from app.utils import deps

router = APIRouter()

@router.post("/", response_model=APIResponse[Category], status_code=status.HTTP_201_CREATED)
async def create_category(
    category_in: CategoryCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    category = await category_service.create_category(db, category_in=category_in, current_user=user)
    return APIResponse(message="Category created successfully", data=category)

@router.post("/sub-category/{category_id}", response_model=APIResponse[SubCategory], status_code=status.HTTP_201_CREATED)
async def create_sub_category(
    category_id: int,
    sub_category_in: SubCategoryCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    sub_category = await category_service.create_sub_category(
        db, category_id=category_id, sub_category_in=sub_category_in, current_user=user
    )
    return APIResponse(message="Sub-category created successfully", data=sub_category)

@router.get("/", response_model=APIResponse[List[Category]])
def get_categories(db: Session = Depends(deps.get_db)):
    return APIResponse(message="Categories retrieved successfully", data=category_service.get_categories(db))

@router.get("/all", response_model=APIResponse[List[CategoryWithSubCategories]])
async def get_categories_with_sub_categories(db: Session = Depends(deps.get_db)):
    """Every category with its sub-categories nested."""
    data = await category_service.get_all_with_sub_categories(db)
    return APIResponse(message="Categories retrieved successfully", data=data)

@router.get("/sub-category/{category_id}", response_model=APIResponse[List[SubCategory]])
def get_sub_categories(category_id: int, db: Session = Depends(deps.get_db)):
    data = category_service.get_sub_categories(db, category_id=category_id)
    return APIResponse(message="Sub-categories retrieved successfully", data=data)

@router.get("/{category_id}", response_model=APIResponse[CategoryWithSubCategories])
def get_category(category_id: int, db: Session = Depends(deps.get_db)):
    return APIResponse(message="Category retrieved successfully", data=category_service.get_category(db, category_id=category_id))
