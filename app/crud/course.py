from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.course import Course, course_purchases
from app.models.course_review import CourseReview
from app.models.lesson import Lesson
from app.models.lesson_question import LessonQuestion
from app.models.quiz import Quiz
from app.models.section import Section
from app.schemas.course import CourseCreate, CourseUpdate


class CRUDCourse(CRUDBase[Course, CourseCreate, CourseUpdate]):

    def _query_with_content(self, db: Session):
        return db.query(Course).options(
            selectinload(Course.author),
            selectinload(Course.sections).selectinload(Section.lessons).selectinload(Lesson.questions).selectinload(LessonQuestion.replies),
            selectinload(Course.sections).selectinload(Section.quizzes).selectinload(Quiz.questions),
            selectinload(Course.reviews).selectinload(CourseReview.replies),
        )

    def get(self, db: Session, id: int) -> Optional[Course]:
        return self._query_with_content(db).filter(Course.id == id).first()

    def get_published(self, db: Session, skip: int = 0, limit: int = 100) -> List[Course]:
        return (
            self._query_with_content(db)
            .filter(Course.is_published == True)
            .order_by(Course.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_ids(self, db: Session, ids: List[int]) -> List[Course]:
        if not ids:
            return []
        return self._query_with_content(db).filter(Course.id.in_(ids)).order_by(Course.id).all()

    def get_by_author(self, db: Session, author_id: int) -> List[Course]:
        return self._query_with_content(db).filter(Course.author_id == author_id).order_by(Course.id).all()

    def get_purchased_by_user(self, db: Session, user_id: int) -> List[Course]:
        return (
            self._query_with_content(db)
            .join(course_purchases, Course.id == course_purchases.c.course_id)
            .filter(course_purchases.c.user_id == user_id)
            .order_by(Course.id)
            .all()
        )


course = CRUDCourse(Course)
