import logging
from typing import List, Optional

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.cache_config import CACHE_KEYS, CACHE_TTL
from app.core.decorators import retry_on_conflict
from app.crud.category import category as crud_category, sub_category as crud_sub_category
from app.crud.course import course as crud_course
from app.crud.lesson import lesson as crud_lesson
from app.crud.question import lesson_question as crud_lesson_question
from app.crud.review import review as crud_review
from app.models.course import Course
from app.models.course_review import CourseReview, ReviewReply
from app.models.lesson_question import LessonQuestion, QuestionReply
from app.models.user import User
from app.schemas.course import (
    CourseCreate, CourseUpdate, CourseView, CourseSnapshot, CourseListItem, PurchasedCourse, InstructorDashboard,
)
from app.schemas.question import QuestionCreate, AnswerCreate
from app.schemas.review import ReviewCreate, ReviewReplyCreate
from app.services import course_view
from app.services.cache_service import cache_service
from app.services.cloudinary import cloudinary_service, COURSE_FOLDER
from app.services.email import email_service
from app.services.level import level_service
from app.services.notification import notification_service
from app.utils.permission import permission_helper

logger = logging.getLogger(__name__)


class CourseService:

    def _get_course(self, db: Session, course_id: int) -> Course:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
        return course

    def _get_managed_course(self, db: Session, course_id: int, current_user: User) -> Course:
        course = self._get_course(db, course_id)
        permission_helper.require_course_management_permission(current_user, course)
        return course

    async def _get_snapshot(self, db: Session, course_id: int, request: Optional[Request] = None) -> CourseSnapshot:
        snapshot = await cache_service.get_course_snapshot(db, course_id, request)
        if snapshot is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
        return snapshot

    async def _instructor_view(self, db: Session, course_id: int) -> CourseView:
        return course_view.instructor_view(await self._get_snapshot(db, course_id))

    def _check_classification(self, db: Session, data: dict, course: Optional[Course] = None):
        """Validate level, category and sub-category in ``data``; a sub-category implies its category."""
        if data.get("level") is not None:
            data["level"] = data["level"].strip().lower()
            if not level_service.is_known(db, data["level"]):
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Level not found")

        if "category_id" not in data and "sub_category_id" not in data:
            return
        category_id = data["category_id"] if "category_id" in data else (course.category_id if course else None)
        sub_category_id = data["sub_category_id"] if "sub_category_id" in data else (course.sub_category_id if course else None)

        if category_id is not None and not crud_category.get(db, id=category_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
        if sub_category_id is not None:
            sub_category = crud_sub_category.get(db, id=sub_category_id)
            if not sub_category:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sub-category not found")
            if category_id is None:
                data["category_id"] = sub_category.category_id
            elif sub_category.category_id != category_id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sub-category does not belong to the course category")

    # authoring

    async def create_course(self, db: Session, *, course_in: CourseCreate, current_user: User) -> CourseView:
        data = course_in.model_dump(exclude={"thumbnail"})
        self._check_classification(db, data)
        if course_in.thumbnail:
            asset = await cloudinary_service.upload_image(course_in.thumbnail, folder=COURSE_FOLDER)
            data["thumbnail_public_id"] = asset["public_id"]
            data["thumbnail_url"] = asset["url"]
        data["author_id"] = current_user.id

        new_course = crud_course.create(db, obj_in=data)
        logger.info(f"User {current_user.id} created course {new_course.id}")
        await cache_service.invalidate_course_cache(new_course.id)
        return await self._instructor_view(db, new_course.id)

    async def update_course(self, db: Session, *, course_id: int, course_in: CourseUpdate, current_user: User) -> CourseView:
        course = self._get_managed_course(db, course_id, current_user)
        previous_thumbnail = course.thumbnail_public_id

        data = course_in.model_dump(exclude_unset=True, exclude={"thumbnail"})
        if data.get("level", "") is None:
            del data["level"]
        self._check_classification(db, data, course)
        if course_in.thumbnail:
            asset = await cloudinary_service.upload_image(course_in.thumbnail, folder=COURSE_FOLDER)
            data["thumbnail_public_id"] = asset["public_id"]
            data["thumbnail_url"] = asset["url"]

        await self._apply_course_update(db, course_id=course_id, data=data, current_user=current_user)
        if "thumbnail_public_id" in data and previous_thumbnail and previous_thumbnail != data["thumbnail_public_id"]:
            await cloudinary_service.destroy(previous_thumbnail)
        return await self._instructor_view(db, course_id)

    @retry_on_conflict()
    async def _apply_course_update(self, db: Session, *, course_id: int, data: dict, current_user: User):
        course = self._get_managed_course(db, course_id, current_user)
        crud_course.update(db, db_obj=course, obj_in=data)
        await cache_service.invalidate_course_cache(course_id)

    @retry_on_conflict()
    async def set_published(self, db: Session, *, course_id: int, published: bool, current_user: User) -> CourseView:
        course = self._get_managed_course(db, course_id, current_user)
        course.is_published = published
        db.commit()
        await cache_service.invalidate_course_cache(course_id)
        logger.info(f"Course {course_id} {'published' if published else 'unpublished'}")
        return await self._instructor_view(db, course_id)

    async def delete_course(self, db: Session, *, course_id: int, current_user: User) -> None:
        course = self._get_managed_course(db, course_id, current_user)
        thumbnail_public_id = course.thumbnail_public_id

        # purchase, order and content rows go with the course
        db.delete(course)
        db.commit()
        await cache_service.invalidate_course_cache(course_id)
        # the asset is only released once nothing points at it any more
        await cloudinary_service.destroy(thumbnail_public_id)
        logger.info(f"User {current_user.id} deleted course {course_id}")

    # reads

    async def get_course_preview(self, db: Session, *, course_id: int, current_user: Optional[User], request: Optional[Request] = None) -> CourseView:
        snapshot = await self._get_snapshot(db, course_id, request)
        if not snapshot.is_published and not (current_user and permission_helper.can_manage_course(current_user, snapshot)):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
        return course_view.preview_view(snapshot)

    async def get_course_content(self, db: Session, *, course_id: int, current_user: User, request: Optional[Request] = None) -> CourseView:
        snapshot = await self._get_snapshot(db, course_id, request)
        permission_helper.require_content_access(current_user, snapshot)
        return course_view.full_view(snapshot)

    async def get_uploaded_course(self, db: Session, *, course_id: int, current_user: User, request: Optional[Request] = None) -> CourseView:
        snapshot = await self._get_snapshot(db, course_id, request)
        permission_helper.require_course_management_permission(current_user, snapshot)
        return course_view.instructor_view(snapshot)

    async def get_catalogue(
        self, db: Session, *, skip: int = 0, limit: int = 100,
        category_id: Optional[int] = None, sub_category_id: Optional[int] = None, level: Optional[str] = None,
    ) -> List[CourseListItem]:
        key = CACHE_KEYS["course_catalogue"]
        cached = await cache.get(key)
        if cached is not None:
            items = [CourseListItem.model_validate(item) for item in cached]
        else:
            items = [
                course_view.catalogue_item(CourseSnapshot.model_validate(course))
                for course in crud_course.get_published(db, skip=0, limit=10_000)
            ]
            await cache.set(key, [item.model_dump(mode="json") for item in items], ttl=CACHE_TTL["course_catalogue"])

        # filters run over the cached list so one entry serves every combination
        if category_id is not None:
            items = [item for item in items if item.category_id == category_id]
        if sub_category_id is not None:
            items = [item for item in items if item.sub_category_id == sub_category_id]
        if level:
            items = [item for item in items if item.level == level.lower()]
        return items[skip:skip + limit]

    async def get_purchased_courses(self, db: Session, *, current_user: User) -> List[PurchasedCourse]:
        key = CACHE_KEYS["user_courses"].format(current_user.id, "purchased")
        cached = await cache.get(key)
        if cached is not None:
            return [PurchasedCourse.model_validate(item) for item in cached]

        items = [
            course_view.purchased_item(CourseSnapshot.model_validate(course))
            for course in crud_course.get_purchased_by_user(db, user_id=current_user.id)
        ]
        await cache.set(key, [item.model_dump(mode="json") for item in items], ttl=CACHE_TTL["user_courses"])
        return items

    async def get_dashboard(self, db: Session, *, current_user: User) -> InstructorDashboard:
        key = CACHE_KEYS["user_courses"].format(current_user.id, "dashboard")
        cached = await cache.get(key)
        if cached is not None:
            return InstructorDashboard.model_validate(cached)

        dashboard = InstructorDashboard(
            uploaded=[
                course_view.catalogue_item(CourseSnapshot.model_validate(course))
                for course in crud_course.get_by_author(db, author_id=current_user.id)
            ],
            purchased=[
                course_view.catalogue_item(CourseSnapshot.model_validate(course))
                for course in crud_course.get_purchased_by_user(db, user_id=current_user.id)
            ],
        )
        await cache.set(key, dashboard.model_dump(mode="json"), ttl=CACHE_TTL["user_courses"])
        return dashboard

    # reviews

    async def add_review(self, db: Session, *, course_id: int, review_in: ReviewCreate, current_user: User) -> CourseView:
        course = self._get_course(db, course_id)
        if not permission_helper.is_purchaser(current_user, course):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not eligible to access this course")
        if crud_review.get_by_user_and_course(db, user_id=current_user.id, course_id=course_id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already reviewed this course")

        await self._store_review(db, course_id=course_id, review_in=review_in, current_user=current_user)
        await cache_service.invalidate_course_cache(course_id)

        course = self._get_course(db, course_id)
        await notification_service.notify_author(
            db,
            user_id=current_user.id,
            author_id=course.author_id,
            course_id=course_id,
            title="New Review Received",
            message=f"{current_user.name} has given a review in {course.name}",
        )
        return course_view.preview_view(await self._get_snapshot(db, course_id))

    @retry_on_conflict()
    async def _store_review(self, db: Session, *, course_id: int, review_in: ReviewCreate, current_user: User):
        course = self._get_course(db, course_id)
        course.reviews.append(CourseReview(user_id=current_user.id, rating=review_in.rating, comment=review_in.comment))
        course.recalculate_rating()
        db.commit()

    @retry_on_conflict()
    async def add_review_reply(self, db: Session, *, reply_in: ReviewReplyCreate, current_user: User) -> CourseView:
        course = self._get_managed_course(db, reply_in.course_id, current_user)
        review = crud_review.get_in_course(db, course_id=course.id, review_id=reply_in.review_id)
        if not review:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")

        review.replies.append(ReviewReply(user_id=current_user.id, comment=reply_in.comment))
        course.mark_content_changed()
        db.commit()
        await cache_service.invalidate_course_cache(reply_in.course_id)
        return course_view.preview_view(await self._get_snapshot(db, reply_in.course_id))

    # lesson Q&A

    def _get_lesson_for_discussion(self, db: Session, course_id: int, lesson_id: int, current_user: User):
        course = self._get_course(db, course_id)
        permission_helper.require_content_access(current_user, course)
        lesson = crud_lesson.get_in_course(db, course_id=course_id, lesson_id=lesson_id)
        if not lesson:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lesson does not exist")
        return course, lesson

    async def add_question(self, db: Session, *, question_in: QuestionCreate, current_user: User) -> CourseView:
        await self._store_question(db, question_in=question_in, current_user=current_user)
        await cache_service.invalidate_course_cache(question_in.course_id)

        course, lesson = self._get_lesson_for_discussion(db, question_in.course_id, question_in.lesson_id, current_user)
        await notification_service.notify_author(
            db,
            user_id=current_user.id,
            author_id=course.author_id,
            course_id=course.id,
            title="New Question Received",
            message=f"You have a new question in {lesson.title}",
        )
        return course_view.full_view(await self._get_snapshot(db, question_in.course_id))

    @retry_on_conflict()
    async def _store_question(self, db: Session, *, question_in: QuestionCreate, current_user: User):
        course, lesson = self._get_lesson_for_discussion(db, question_in.course_id, question_in.lesson_id, current_user)
        lesson.questions.append(LessonQuestion(user_id=current_user.id, question=question_in.question))
        course.mark_content_changed()
        db.commit()

    async def add_answer(self, db: Session, *, answer_in: AnswerCreate, current_user: User) -> CourseView:
        asker = await self._store_answer(db, answer_in=answer_in, current_user=current_user)
        await cache_service.invalidate_course_cache(answer_in.course_id)

        course, lesson = self._get_lesson_for_discussion(db, answer_in.course_id, answer_in.lesson_id, current_user)
        if asker.id == current_user.id:
            await notification_service.notify_author(
                db,
                user_id=current_user.id,
                author_id=course.author_id,
                course_id=course.id,
                title="New Question Reply Received",
                message=f"You have a new question reply in {lesson.title}",
            )
        else:
            await email_service.send_question_reply(
                to_email=asker.email, name=asker.name, lesson_title=lesson.title, course_name=course.name
            )
        return course_view.full_view(await self._get_snapshot(db, answer_in.course_id))

    @retry_on_conflict()
    async def _store_answer(self, db: Session, *, answer_in: AnswerCreate, current_user: User) -> User:
        course, lesson = self._get_lesson_for_discussion(db, answer_in.course_id, answer_in.lesson_id, current_user)
        question = crud_lesson_question.get_in_lesson(db, lesson_id=lesson.id, question_id=answer_in.question_id)
        if not question:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")

        question.replies.append(QuestionReply(user_id=current_user.id, answer=answer_in.answer))
        course.mark_content_changed()
        asker = question.user
        db.commit()
        return asker


course_service = CourseService()
