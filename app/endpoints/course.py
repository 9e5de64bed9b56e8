from typing import List, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.response import APIResponse
from app.utils import deps
from app.schemas.course import (
    CourseCreate, CourseUpdate, CourseView, CourseListItem, PurchasedCourse, InstructorDashboard,
)
from app.schemas.lesson import LessonCreate, LessonUpdate, LessonRef, LessonVideoUpload
from app.schemas.question import QuestionCreate, AnswerCreate
from app.schemas.review import ReviewCreate, ReviewReplyCreate
from app.schemas.section import SectionCreate, SectionUpdate, SectionRef, OrderItem
from app.services.course import course_service
from app.services.course_content import course_content_service

router = APIRouter()


# course authoring

@router.post("/", response_model=APIResponse[CourseView], status_code=status.HTTP_201_CREATED)
async def create_course(
    *,
    db: Session = Depends(deps.get_db),
    course_in: CourseCreate,
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_service.create_course(db, course_in=course_in, current_user=user)
    return APIResponse(message="Course created successfully", data=course)


@router.put("/publish/{course_id}", response_model=APIResponse[CourseView])
async def publish_course(course_id: int, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_instructor)):
    course = await course_service.set_published(db, course_id=course_id, published=True, current_user=user)
    return APIResponse(message="Course published successfully", data=course)


@router.put("/unpublish/{course_id}", response_model=APIResponse[CourseView])
async def unpublish_course(course_id: int, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_instructor)):
    course = await course_service.set_published(db, course_id=course_id, published=False, current_user=user)
    return APIResponse(message="Course unpublished successfully", data=course)


# sections

@router.put("/create-section/{course_id}", response_model=APIResponse[CourseView])
async def create_section(
    course_id: int,
    section_in: SectionCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.create_section(db, course_id=course_id, section_in=section_in, current_user=user)
    return APIResponse(message="Section created successfully", data=course)


@router.put("/update-section/{course_id}", response_model=APIResponse[CourseView])
async def update_section(
    course_id: int,
    section_in: SectionUpdate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.update_section(db, course_id=course_id, section_in=section_in, current_user=user)
    return APIResponse(message="Section updated successfully", data=course)


@router.put("/reorder-section/{course_id}", response_model=APIResponse[CourseView])
async def reorder_sections(
    course_id: int,
    items: List[OrderItem],
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.reorder_sections(db, course_id=course_id, items=items, current_user=user)
    return APIResponse(message="Sections reordered successfully", data=course)


@router.put("/publish-section/{course_id}", response_model=APIResponse[CourseView])
async def publish_section(
    course_id: int,
    section_in: SectionRef,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.publish_section(db, course_id=course_id, section_in=section_in, current_user=user)
    return APIResponse(message="Section published successfully", data=course)


@router.put("/unpublish-section/{course_id}", response_model=APIResponse[CourseView])
async def unpublish_section(
    course_id: int,
    section_in: SectionRef,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.unpublish_section(db, course_id=course_id, section_in=section_in, current_user=user)
    return APIResponse(message="Section unpublished successfully", data=course)


@router.put("/delete-section/{course_id}", response_model=APIResponse[CourseView])
async def delete_section(
    course_id: int,
    section_in: SectionRef,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.delete_section(db, course_id=course_id, section_in=section_in, current_user=user)
    return APIResponse(message="Section deleted successfully", data=course)


# lessons

@router.put("/create-lesson/{course_id}", response_model=APIResponse[CourseView])
async def create_lesson(
    course_id: int,
    lesson_in: LessonCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.create_lesson(db, course_id=course_id, lesson_in=lesson_in, current_user=user)
    return APIResponse(message="Lesson created successfully", data=course)


@router.put("/update-lesson/{course_id}", response_model=APIResponse[CourseView])
async def update_lesson(
    course_id: int,
    lesson_in: LessonUpdate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.update_lesson(db, course_id=course_id, lesson_in=lesson_in, current_user=user)
    return APIResponse(message="Lesson updated successfully", data=course)


@router.put("/reorder-lesson/{course_id}", response_model=APIResponse[CourseView])
async def reorder_lessons(
    course_id: int,
    items: List[OrderItem],
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.reorder_lessons(db, course_id=course_id, items=items, current_user=user)
    return APIResponse(message="Lessons reordered successfully", data=course)


@router.put("/publish-lesson/{course_id}", response_model=APIResponse[CourseView])
async def publish_lesson(
    course_id: int,
    lesson_in: LessonRef,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.publish_lesson(db, course_id=course_id, lesson_in=lesson_in, current_user=user)
    return APIResponse(message="Lesson published successfully", data=course)


@router.put("/unpublish-lesson/{course_id}", response_model=APIResponse[CourseView])
async def unpublish_lesson(
    course_id: int,
    lesson_in: LessonRef,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.unpublish_lesson(db, course_id=course_id, lesson_in=lesson_in, current_user=user)
    return APIResponse(message="Lesson unpublished successfully", data=course)


@router.put("/delete-lesson/{course_id}", response_model=APIResponse[CourseView])
async def delete_lesson(
    course_id: int,
    lesson_in: LessonRef,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.delete_lesson(db, course_id=course_id, lesson_in=lesson_in, current_user=user)
    return APIResponse(message="Lesson deleted successfully", data=course)


@router.put("/upload-lesson-video/{course_id}", response_model=APIResponse[CourseView])
async def upload_lesson_video(
    course_id: int,
    upload: LessonVideoUpload,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_content_service.upload_lesson_video(db, course_id=course_id, upload=upload, current_user=user)
    return APIResponse(message="Lesson video uploaded successfully", data=course)


# reviews and lesson Q&A

@router.put("/add-review/{course_id}", response_model=APIResponse[CourseView])
async def add_review(
    course_id: int,
    review_in: ReviewCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user)
):
    course = await course_service.add_review(db, course_id=course_id, review_in=review_in, current_user=user)
    return APIResponse(message="Review added successfully", data=course)


@router.put("/add-reply", response_model=APIResponse[CourseView])
async def add_review_reply(
    reply_in: ReviewReplyCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user)
):
    course = await course_service.add_review_reply(db, reply_in=reply_in, current_user=user)
    return APIResponse(message="Reply added successfully", data=course)


@router.put("/add-question", response_model=APIResponse[CourseView])
async def add_question(
    question_in: QuestionCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user)
):
    course = await course_service.add_question(db, question_in=question_in, current_user=user)
    return APIResponse(message="Question added successfully", data=course)


@router.put("/add-answer", response_model=APIResponse[CourseView])
async def add_answer(
    answer_in: AnswerCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user)
):
    course = await course_service.add_answer(db, answer_in=answer_in, current_user=user)
    return APIResponse(message="Answer added successfully", data=course)


# reads; the static paths must stay above /{course_id}

@router.get("/", response_model=APIResponse[List[CourseListItem]])
async def get_all_courses(
    db: Session = Depends(deps.get_db),
    skip: int = 0,
    limit: int = 100,
    category_id: Optional[int] = None,
    sub_category_id: Optional[int] = None,
    level: Optional[str] = None,
):
    courses = await course_service.get_catalogue(
        db, skip=skip, limit=limit, category_id=category_id, sub_category_id=sub_category_id, level=level
    )
    return APIResponse(message="Courses retrieved successfully", data=courses)


@router.get("/purchased", response_model=APIResponse[List[PurchasedCourse]])
async def get_purchased_courses(db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_user)):
    courses = await course_service.get_purchased_courses(db, current_user=user)
    return APIResponse(message="Purchased courses retrieved successfully", data=courses)


@router.get("/mine", response_model=APIResponse[InstructorDashboard])
async def get_my_courses(db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_user)):
    dashboard = await course_service.get_dashboard(db, current_user=user)
    return APIResponse(message="Your courses retrieved successfully", data=dashboard)


@router.get("/purchased/{course_id}", response_model=APIResponse[CourseView])
async def get_course_content(
    course_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user)
):
    course = await course_service.get_course_content(db, course_id=course_id, current_user=user, request=request)
    return APIResponse(message="Course content retrieved successfully", data=course)


@router.get("/uploaded/{course_id}", response_model=APIResponse[CourseView])
async def get_uploaded_course(
    course_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_service.get_uploaded_course(db, course_id=course_id, current_user=user, request=request)
    return APIResponse(message="Course retrieved successfully", data=course)


@router.get("/{course_id}", response_model=APIResponse[CourseView])
async def read_course(
    course_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    user: Optional[User] = Depends(deps.get_optional_user)
):
    course = await course_service.get_course_preview(db, course_id=course_id, current_user=user, request=request)
    return APIResponse(message="Course retrieved successfully", data=course)


@router.put("/{course_id}", response_model=APIResponse[CourseView])
async def update_course(
    course_id: int,
    course_in: CourseUpdate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    course = await course_service.update_course(db, course_id=course_id, course_in=course_in, current_user=user)
    return APIResponse(message="Course updated successfully", data=course)


@router.delete("/{course_id}", response_model=APIResponse[None])
async def delete_course(course_id: int, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_instructor)):
    await course_service.delete_course(db, course_id=course_id, current_user=user)
    return APIResponse(message="Course deleted successfully")
