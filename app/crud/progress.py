from pydantic import BaseModel
from sqlalchemy.orm import Session, selectinload
from typing import Optional, Iterable, List

from app.crud.base import CRUDBase
from app.models.progress import Progress, CompletedLesson

class CRUDProgress(CRUDBase[Progress, BaseModel, BaseModel]):
    def get_by_user_and_course(self, db: Session, *, user_id: int, course_id: int) -> Optional[Progress]:
        return (
            db.query(self.model)
            .options(selectinload(self.model.completed_lessons))
            .filter(self.model.user_id == user_id, self.model.course_id == course_id)
            .first()
        )

    def get_by_course(self, db: Session, *, course_id: int) -> List[Progress]:
        return (
            db.query(self.model)
            .options(selectinload(self.model.completed_lessons))
            .filter(self.model.course_id == course_id)
            .all()
        )

    def find_completed(self, progress: Progress, lesson_id: int) -> Optional[CompletedLesson]:
        return next((item for item in progress.completed_lessons if item.lesson_id == lesson_id), None)

    def drop_completed_lessons(self, db: Session, *, course_id: int, lesson_ids: Iterable[int]) -> int:
        """Forget completions of lessons that no longer exist. Changes are flushed with the caller's commit."""
        lesson_ids = set(lesson_ids)
        dropped = 0
        for record in self.get_by_course(db, course_id=course_id):
            stale = [item for item in record.completed_lessons if item.lesson_id in lesson_ids]
            for item in stale:
                record.completed_lessons.remove(item)
            if stale:
                record.recalculate_totals()
                dropped += len(stale)
        return dropped

progress = CRUDProgress(Progress)
