from pydantic import BaseModel
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.quiz import Quiz, QuizQuestion, QuizScore
from app.schemas.quiz import QuizCreate, QuizUpdate, QuizQuestionCreate, QuizQuestionUpdate

class CRUDQuiz(CRUDBase[Quiz, QuizCreate, QuizUpdate]):
    def _query(self, db: Session):
        return db.query(self.model).options(
            selectinload(self.model.questions),
            selectinload(self.model.scores).selectinload(QuizScore.user),
        )

    def get(self, db: Session, id: int) -> Optional[Quiz]:
        return self._query(db).filter(self.model.id == id).first()

    def get_filtered(
        self, db: Session, *, difficulty: Optional[str] = None, course_id: Optional[int] = None,
        skip: int = 0, limit: int = 100
    ) -> List[Quiz]:
        query = self._query(db)
        if difficulty:
            query = query.filter(self.model.difficulty == difficulty)
        if course_id:
            query = query.filter(self.model.course_id == course_id)
        return query.order_by(self.model.id).offset(skip).limit(limit).all()

    def get_by_course(self, db: Session, *, course_id: int) -> List[Quiz]:
        return self._query(db).filter(self.model.course_id == course_id).order_by(self.model.id).all()

    def get_by_section(self, db: Session, *, section_id: int) -> List[Quiz]:
        return self._query(db).filter(self.model.section_id == section_id).order_by(self.model.id).all()

    def exists_for_section(self, db: Session, *, section_id: int) -> bool:
        return db.query(self.model.id).filter(self.model.section_id == section_id).first() is not None

class CRUDQuizQuestion(CRUDBase[QuizQuestion, QuizQuestionCreate, QuizQuestionUpdate]):
    def get_in_quiz(self, db: Session, *, quiz_id: int, question_id: int) -> Optional[QuizQuestion]:
        return db.query(self.model).filter(self.model.id == question_id, self.model.quiz_id == quiz_id).first()

class CRUDQuizScore(CRUDBase[QuizScore, BaseModel, BaseModel]):
    def count_attempts(self, db: Session, *, quiz_id: int, user_id: int) -> int:
        return db.query(self.model).filter(self.model.quiz_id == quiz_id, self.model.user_id == user_id).count()

quiz = CRUDQuiz(Quiz)
quiz_question = CRUDQuizQuestion(QuizQuestion)
quiz_score = CRUDQuizScore(QuizScore)
