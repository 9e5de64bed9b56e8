from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.lesson import Lesson
from app.models.section import Section
from app.schemas.lesson import LessonCreate, LessonUpdate

class CRUDLesson(CRUDBase[Lesson, LessonCreate, LessonUpdate]):
    def get_in_course(self, db: Session, *, course_id: int, lesson_id: int) -> Optional[Lesson]:
        return (
            db.query(self.model)
            .join(Section, self.model.section_id == Section.id)
            .options(selectinload(self.model.section).selectinload(Section.lessons))
            .filter(self.model.id == lesson_id, Section.course_id == course_id)
            .first()
        )

    def get_by_section(self, db: Session, *, section_id: int) -> List[Lesson]:
        return db.query(self.model).filter(self.model.section_id == section_id).order_by(self.model.order, self.model.id).all()

lesson = CRUDLesson(Lesson)
