from sqlalchemy.orm import Session
from typing import Optional

from app.crud.base import CRUDBase
from app.models.lesson_question import LessonQuestion, QuestionReply
from app.schemas.question import QuestionCreate, AnswerCreate

class CRUDLessonQuestion(CRUDBase[LessonQuestion, QuestionCreate, QuestionCreate]):
    def get_in_lesson(self, db: Session, *, lesson_id: int, question_id: int) -> Optional[LessonQuestion]:
        return db.query(self.model).filter(self.model.id == question_id, self.model.lesson_id == lesson_id).first()

class CRUDQuestionReply(CRUDBase[QuestionReply, AnswerCreate, AnswerCreate]):
    pass

lesson_question = CRUDLessonQuestion(LessonQuestion)
question_reply = CRUDQuestionReply(QuestionReply)
