import logging
from typing import List, Optional
from urllib.parse import urlencode

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.cache_config import CACHE_KEYS, CACHE_TTL
from app.core.constants import QuestionTypeEnum
from app.crud.course import course as crud_course
from app.crud.quiz import quiz as crud_quiz, quiz_question as crud_quiz_question, quiz_score as crud_quiz_score
from app.crud.section import section as crud_section
from app.models.quiz import Quiz as QuizModel, QuizQuestion as QuizQuestionModel, QuizScore as QuizScoreModel
from app.models.user import User
from app.schemas.quiz import (
    Quiz, QuizDetail, QuizCreate, QuizUpdate, QuizQuestion, QuizQuestionCreate, QuizQuestionUpdate,
    QuizSubmit, QuizResult,
)
from app.services.cache_service import cache_service
from app.utils.permission import permission_helper

logger = logging.getLogger(__name__)


def validate_answer(question_type: str, options: List[str], correct_answer) -> None:
    """The correct answer must be drawn from the options, one for single-choice, a list for multiple-choice."""
    if question_type == QuestionTypeEnum.MULTIPLE_CHOICE.value:
        if not isinstance(correct_answer, list) or not correct_answer:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Multiple-choice questions need a list of correct answers")
        invalid = [answer for answer in correct_answer if answer not in options]
    else:
        if not isinstance(correct_answer, str):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Single-choice questions need exactly one correct answer")
        invalid = [] if correct_answer in options else [correct_answer]
    if invalid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Correct answer must be one of the options")


def is_correct(question: QuizQuestionModel, answer) -> bool:
    expected = question.correct_answer
    if isinstance(expected, list):
        return isinstance(answer, list) and sorted(answer) == sorted(expected)
    return answer == expected


class QuizService:

    def _get_quiz(self, db: Session, quiz_id: int) -> QuizModel:
        quiz = crud_quiz.get(db, id=quiz_id)
        if not quiz:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
        return quiz

    def _get_managed_quiz(self, db: Session, quiz_id: int, current_user: User) -> QuizModel:
        quiz = self._get_quiz(db, quiz_id)
        permission_helper.require_course_management_permission(current_user, quiz.course)
        return quiz

    async def _invalidate(self, course_id: int):
        await cache_service.invalidate_quiz_cache(course_id)

    async def create_quiz(self, db: Session, *, quiz_in: QuizCreate, current_user: User) -> Quiz:
        course = crud_course.get(db, id=quiz_in.course_id)
        if not course:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
        permission_helper.require_course_management_permission(current_user, course)

        section = crud_section.get_in_course(db, course_id=course.id, section_id=quiz_in.section_id)
        if not section:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section does not exist")
        if crud_quiz.exists_for_section(db, section_id=section.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This section already has a quiz")

        for question in quiz_in.questions:
            validate_answer(question.type, question.options, question.correct_answer)

        quiz = QuizModel(
            **quiz_in.model_dump(exclude={"questions"}),
            instructor_id=current_user.id,
            lesson_order=max((lesson.order for lesson in section.lessons), default=0) + 1,
        )
        quiz.questions = [QuizQuestionModel(**question.model_dump()) for question in quiz_in.questions]
        db.add(quiz)
        db.commit()
        logger.info(f"User {current_user.id} created quiz {quiz.id} for section {section.id}")

        await self._invalidate(course.id)
        return Quiz.model_validate(self._get_quiz(db, quiz.id))

    def get_quiz(self, db: Session, *, quiz_id: int) -> QuizDetail:
        return QuizDetail.model_validate(self._get_quiz(db, quiz_id))

    async def list_quizzes(
        self, db: Session, *, difficulty: Optional[str] = None, course_id: Optional[int] = None,
        skip: int = 0, limit: int = 100
    ) -> List[Quiz]:
        query = urlencode({"difficulty": difficulty or "", "course_id": course_id or "", "skip": skip, "limit": limit})
        key = CACHE_KEYS["quiz_list"].format(query)
        cached = await cache.get(key)
        if cached is not None:
            return [Quiz.model_validate(item) for item in cached]

        quizzes = [
            Quiz.model_validate(q)
            for q in crud_quiz.get_filtered(db, difficulty=difficulty, course_id=course_id, skip=skip, limit=limit)
        ]
        await cache.set(key, [q.model_dump(mode="json") for q in quizzes], ttl=CACHE_TTL["quiz_list"])
        return quizzes

    def list_by_course(self, db: Session, *, course_id: int) -> List[Quiz]:
        return [Quiz.model_validate(q) for q in crud_quiz.get_by_course(db, course_id=course_id)]

    def list_by_section(self, db: Session, *, section_id: int) -> List[Quiz]:
        return [Quiz.model_validate(q) for q in crud_quiz.get_by_section(db, section_id=section_id)]

    async def update_quiz(self, db: Session, *, quiz_id: int, quiz_in: QuizUpdate, current_user: User) -> Quiz:
        quiz = self._get_managed_quiz(db, quiz_id, current_user)
        crud_quiz.update(db, db_obj=quiz, obj_in=quiz_in)
        await self._invalidate(quiz.course_id)
        return Quiz.model_validate(self._get_quiz(db, quiz_id))

    async def delete_quiz(self, db: Session, *, quiz_id: int, current_user: User) -> None:
        quiz = self._get_managed_quiz(db, quiz_id, current_user)
        course_id = quiz.course_id
        crud_quiz.delete(db, id=quiz_id)
        await self._invalidate(course_id)

    # questions

    async def create_question(self, db: Session, *, quiz_id: int, question_in: QuizQuestionCreate, current_user: User) -> QuizQuestion:
        quiz = self._get_managed_quiz(db, quiz_id, current_user)
        validate_answer(question_in.type, question_in.options, question_in.correct_answer)

        question = crud_quiz_question.create(db, obj_in={**question_in.model_dump(), "quiz_id": quiz.id})
        await self._invalidate(quiz.course_id)
        return QuizQuestion.model_validate(question)

    def get_question(self, db: Session, *, quiz_id: int, question_id: int) -> QuizQuestion:
        question = crud_quiz_question.get_in_quiz(db, quiz_id=quiz_id, question_id=question_id)
        if not question:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
        return QuizQuestion.model_validate(question)

    def list_questions(self, db: Session, *, quiz_id: int) -> List[QuizQuestion]:
        return [QuizQuestion.model_validate(q) for q in self._get_quiz(db, quiz_id).questions]

    async def update_question(
        self, db: Session, *, quiz_id: int, question_id: int, question_in: QuizQuestionUpdate, current_user: User
    ) -> QuizQuestion:
        quiz = self._get_managed_quiz(db, quiz_id, current_user)
        question = crud_quiz_question.get_in_quiz(db, quiz_id=quiz.id, question_id=question_id)
        if not question:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")

        data = question_in.model_dump(exclude_unset=True)
        validate_answer(
            data.get("type", question.type),
            data.get("options", question.options),
            data.get("correct_answer", question.correct_answer),
        )
        question = crud_quiz_question.update(db, db_obj=question, obj_in=data)
        await self._invalidate(quiz.course_id)
        return QuizQuestion.model_validate(question)

    async def delete_question(self, db: Session, *, quiz_id: int, question_id: int, current_user: User) -> None:
        quiz = self._get_managed_quiz(db, quiz_id, current_user)
        question = crud_quiz_question.get_in_quiz(db, quiz_id=quiz.id, question_id=question_id)
        if not question:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
        crud_quiz_question.delete(db, id=question.id)
        await self._invalidate(quiz.course_id)

    # attempts

    async def submit_quiz(self, db: Session, *, quiz_id: int, submission: QuizSubmit, current_user: User) -> QuizResult:
        quiz = self._get_quiz(db, quiz_id)
        permission_helper.require_content_access(current_user, quiz.course)

        attempts = crud_quiz_score.count_attempts(db, quiz_id=quiz.id, user_id=current_user.id)
        if attempts >= quiz.max_attempts:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Maximum attempts reached for this quiz")

        score = 0.0
        for index, question in enumerate(quiz.questions):
            answer = submission.answers[index] if index < len(submission.answers) else None
            if answer is not None and is_correct(question, answer):
                score += question.points

        db.add(QuizScoreModel(quiz_id=quiz.id, user_id=current_user.id, score=score))
        db.commit()
        logger.info(f"User {current_user.id} scored {score} on quiz {quiz.id}")

        await self._invalidate(quiz.course_id)
        return QuizResult(
            quiz_id=quiz.id,
            score=score,
            total_points=sum(question.points for question in quiz.questions),
            passing_score=quiz.passing_score,
            is_passed=score >= quiz.passing_score,
            attempts_used=attempts + 1,
            max_attempts=quiz.max_attempts,
        )


quiz_service = QuizService()
