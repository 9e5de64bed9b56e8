from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.category import Category, SubCategory
from app.schemas.category import CategoryCreate, SubCategoryCreate

class CRUDCategory(CRUDBase[Category, CategoryCreate, CategoryCreate]):
    def get_by_title(self, db: Session, *, title: str) -> Optional[Category]:
        return db.query(self.model).filter(func.lower(self.model.title) == title.lower()).first()

    def get_all_with_sub_categories(self, db: Session) -> List[Category]:
        return (
            db.query(self.model)
            .options(selectinload(self.model.sub_categories))
            .order_by(self.model.id)
            .all()
        )

class CRUDSubCategory(CRUDBase[SubCategory, SubCategoryCreate, SubCategoryCreate]):
    def get_by_category(self, db: Session, *, category_id: int) -> List[SubCategory]:
        return db.query(self.model).filter(self.model.category_id == category_id).order_by(self.model.id).all()

    def get_by_title(self, db: Session, *, category_id: int, title: str) -> Optional[SubCategory]:
        return (
            db.query(self.model)
            .filter(self.model.category_id == category_id, func.lower(self.model.title) == title.lower())
            .first()
        )

category = CRUDCategory(Category)
sub_category = CRUDSubCategory(SubCategory)
