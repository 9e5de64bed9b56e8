"""Course categories and their sub-categories."""
import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.cache_config import CACHE_KEYS, CACHE_TTL
from app.crud.category import category as crud_category, sub_category as crud_sub_category
from app.models.category import Category as CategoryModel
from app.models.user import User
from app.schemas.category import Category, CategoryCreate, CategoryWithSubCategories, SubCategory, SubCategoryCreate
from app.services.cache_service import cache_service

logger = logging.getLogger(__name__)

CATEGORY_NOT_FOUND = "Category not found"


def _clean_title(title, message: str) -> str:
    title = (title or "").strip()
    if not title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return title


class CategoryService:

    def _get_category(self, db: Session, category_id: int) -> CategoryModel:
        category = crud_category.get(db, id=category_id)
        if not category:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CATEGORY_NOT_FOUND)
        return category

    async def create_category(self, db: Session, *, category_in: CategoryCreate, current_user: User) -> Category:
        title = _clean_title(category_in.title, "Please provide a category title")
        if crud_category.get_by_title(db, title=title):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category already exists")

        category = crud_category.create(db, obj_in={"title": title})
        await cache_service.invalidate_category_cache()
        logger.info(f"User {current_user.id} created category {category.id} '{title}'")
        return Category.model_validate(category)

    async def create_sub_category(self, db: Session, *, category_id: int, sub_category_in: SubCategoryCreate, current_user: User) -> SubCategory:
        category = self._get_category(db, category_id)
        title = _clean_title(sub_category_in.title, "Please provide a sub-category title")
        if crud_sub_category.get_by_title(db, category_id=category.id, title=title):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Sub-category already exists")

        sub_category = crud_sub_category.create(db, obj_in={"category_id": category.id, "title": title})
        await cache_service.invalidate_category_cache()
        logger.info(f"User {current_user.id} created sub-category {sub_category.id} under category {category.id}")
        return SubCategory.model_validate(sub_category)

    def get_categories(self, db: Session) -> List[Category]:
        return [Category.model_validate(c) for c in crud_category.get_multi(db, limit=1000)]

    async def get_all_with_sub_categories(self, db: Session) -> List[CategoryWithSubCategories]:
        key = CACHE_KEYS["categories"]
        cached = await cache.get(key)
        if cached is not None:
            return [CategoryWithSubCategories.model_validate(item) for item in cached]

        categories = [CategoryWithSubCategories.model_validate(c) for c in crud_category.get_all_with_sub_categories(db)]
        await cache.set(key, [c.model_dump(mode="json") for c in categories], ttl=CACHE_TTL["categories"])
        return categories

    def get_category(self, db: Session, *, category_id: int) -> CategoryWithSubCategories:
        return CategoryWithSubCategories.model_validate(self._get_category(db, category_id))

    def get_sub_categories(self, db: Session, *, category_id: int) -> List[SubCategory]:
        self._get_category(db, category_id)
        return [SubCategory.model_validate(s) for s in crud_sub_category.get_by_category(db, category_id=category_id)]


category_service = CategoryService()
