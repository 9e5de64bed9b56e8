from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.constants import QuizDifficultyEnum
from app.models.user import User
from app.schemas.quiz import (
    Quiz, QuizDetail, QuizCreate, QuizUpdate, QuizQuestion, QuizQuestionCreate, QuizQuestionUpdate,
    QuizSubmit, QuizResult,
)
from app.schemas.response import APIResponse
from app.services.quiz import quiz_service
from app.utils import deps

router = APIRouter()


@router.get("/", response_model=APIResponse[List[Quiz]])
async def get_all_quizzes(
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor),
    difficulty: Optional[QuizDifficultyEnum] = None,
    course_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100
):
    quizzes = await quiz_service.list_quizzes(
        db, difficulty=difficulty.value if difficulty else None, course_id=course_id, skip=skip, limit=limit
    )
    return APIResponse(message="Quizzes retrieved successfully", data=quizzes)


@router.post("/create-quiz", response_model=APIResponse[Quiz], status_code=status.HTTP_201_CREATED)
async def create_quiz(quiz_in: QuizCreate, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_instructor)):
    quiz = await quiz_service.create_quiz(db, quiz_in=quiz_in, current_user=user)
    return APIResponse(message="Quiz created successfully", data=quiz)


@router.get("/course/{course_id}", response_model=APIResponse[List[Quiz]])
def get_quizzes_by_course(course_id: int, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_instructor)):
    return APIResponse(message="Quizzes retrieved successfully", data=quiz_service.list_by_course(db, course_id=course_id))


@router.get("/section/{section_id}", response_model=APIResponse[List[Quiz]])
def get_quizzes_by_section(section_id: int, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_instructor)):
    return APIResponse(message="Quizzes retrieved successfully", data=quiz_service.list_by_section(db, section_id=section_id))


@router.get("/{quiz_id}", response_model=APIResponse[QuizDetail])
def get_quiz(quiz_id: int, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_instructor)):
    return APIResponse(message="Quiz retrieved successfully", data=quiz_service.get_quiz(db, quiz_id=quiz_id))


@router.put("/{quiz_id}", response_model=APIResponse[Quiz])
async def update_quiz(
    quiz_id: int,
    quiz_in: QuizUpdate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    quiz = await quiz_service.update_quiz(db, quiz_id=quiz_id, quiz_in=quiz_in, current_user=user)
    return APIResponse(message="Quiz updated successfully", data=quiz)


@router.delete("/{quiz_id}", response_model=APIResponse[None])
async def delete_quiz(quiz_id: int, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_instructor)):
    await quiz_service.delete_quiz(db, quiz_id=quiz_id, current_user=user)
    return APIResponse(message="Quiz deleted successfully")


@router.post("/{quiz_id}/submit", response_model=APIResponse[QuizResult])
async def submit_quiz(
    quiz_id: int,
    submission: QuizSubmit,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user)
):
    result = await quiz_service.submit_quiz(db, quiz_id=quiz_id, submission=submission, current_user=user)
    return APIResponse(message="Quiz submitted successfully", data=result)


@router.get("/{quiz_id}/questions", response_model=APIResponse[List[QuizQuestion]])
def get_questions(quiz_id: int, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_instructor)):
    return APIResponse(message="Questions retrieved successfully", data=quiz_service.list_questions(db, quiz_id=quiz_id))


@router.post("/{quiz_id}/questions", response_model=APIResponse[QuizQuestion], status_code=status.HTTP_201_CREATED)
async def create_question(
    quiz_id: int,
    question_in: QuizQuestionCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    question = await quiz_service.create_question(db, quiz_id=quiz_id, question_in=question_in, current_user=user)
    return APIResponse(message="Question created successfully", data=question)


@router.get("/{quiz_id}/questions/{question_id}", response_model=APIResponse[QuizQuestion])
def get_question(quiz_id: int, question_id: int, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_instructor)):
    question = quiz_service.get_question(db, quiz_id=quiz_id, question_id=question_id)
    return APIResponse(message="Question retrieved successfully", data=question)


@router.put("/{quiz_id}/questions/{question_id}", response_model=APIResponse[QuizQuestion])
async def update_question(
    quiz_id: int,
    question_id: int,
    question_in: QuizQuestionUpdate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    question = await quiz_service.update_question(
        db, quiz_id=quiz_id, question_id=question_id, question_in=question_in, current_user=user
    )
    return APIResponse(message="Question updated successfully", data=question)


@router.delete("/{quiz_id}/questions/{question_id}", response_model=APIResponse[None])
async def delete_question(
    quiz_id: int,
    question_id: int,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    await quiz_service.delete_question(db, quiz_id=quiz_id, question_id=question_id, current_user=user)
    return APIResponse(message="Question deleted successfully")
