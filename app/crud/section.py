from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.section import Section
from app.schemas.section import SectionCreate, SectionUpdate

class CRUDSection(CRUDBase[Section, SectionCreate, SectionUpdate]):
    def get_in_course(self, db: Session, *, course_id: int, section_id: int) -> Optional[Section]:
        return (
            db.query(self.model)
            .options(selectinload(self.model.lessons))
            .filter(self.model.id == section_id, self.model.course_id == course_id)
            .first()
        )

    def get_by_course(self, db: Session, *, course_id: int) -> List[Section]:
        return db.query(self.model).filter(self.model.course_id == course_id).order_by(self.model.order, self.model.id).all()

section = CRUDSection(Section)
