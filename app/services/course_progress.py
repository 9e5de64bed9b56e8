import logging
from typing import List, Set

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.cache_config import CACHE_KEYS, CACHE_TTL
from app.crud.course import course as crud_course
from app.crud.lesson import lesson as crud_lesson
from app.crud.progress import progress as crud_progress
from app.models.course import Course
from app.models.progress import Progress, CompletedLesson
from app.models.user import User
from app.schemas.progress import ProgressUpdate, CourseProgress, SectionProgress, ProgressSummary
from app.services.cache_service import cache_service
from app.utils.permission import permission_helper

logger = logging.getLogger(__name__)


class CourseProgressService:

    def _get_accessible_course(self, db: Session, course_id: int, current_user: User) -> Course:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
        permission_helper.require_content_access(current_user, course)
        return course

    def _live_lesson_ids(self, course: Course) -> Set[int]:
        return {lesson.id for lesson in course.lessons if not lesson.is_placeholder}

    def _to_schema(self, progress: Progress, course: Course) -> CourseProgress:
        # totals follow the course as it is now, not as it was when the row was written
        live = self._live_lesson_ids(course)
        sections = {}
        for section_id, lesson_ids in progress.completed_by_section().items():
            kept = [lesson_id for lesson_id in lesson_ids if lesson_id in live]
            if kept:
                sections[section_id] = kept
        total_lessons = len(live)
        total_completed = sum(len(lesson_ids) for lesson_ids in sections.values())
        percentage = round(total_completed / total_lessons * 100) if total_lessons else 0
        return CourseProgress(
            course_id=progress.course_id,
            user_id=progress.user_id,
            total_lessons=total_lessons,
            total_completed=total_completed,
            completion_percentage=percentage,
            sections=[
                SectionProgress(section_id=section_id, completed_lessons=lesson_ids)
                for section_id, lesson_ids in sections.items()
            ],
        )

    async def update_progress(self, db: Session, *, course_id: int, progress_in: ProgressUpdate, current_user: User) -> CourseProgress:
        if not progress_in.lesson_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Lesson id is required")

        course = self._get_accessible_course(db, course_id, current_user)
        lesson = crud_lesson.get_in_course(db, course_id=course_id, lesson_id=progress_in.lesson_id)
        if not lesson:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found in course")

        progress = crud_progress.get_by_user_and_course(db, user_id=current_user.id, course_id=course_id)
        if progress is None:
            progress = Progress(user_id=current_user.id, course_id=course_id)
            db.add(progress)

        live = self._live_lesson_ids(course)
        for item in [item for item in progress.completed_lessons if item.lesson_id not in live]:
            progress.completed_lessons.remove(item)

        existing = crud_progress.find_completed(progress, lesson.id)
        if progress_in.is_completed and existing is None and lesson.id in live:
            progress.completed_lessons.append(CompletedLesson(section_id=lesson.section_id, lesson_id=lesson.id))
        elif not progress_in.is_completed and existing is not None:
            progress.completed_lessons.remove(existing)

        progress.total_lessons = len(live)
        progress.recalculate_totals()
        db.commit()
        db.refresh(progress)

        await cache_service.invalidate_progress_cache(current_user.id, course_id)
        logger.info(f"User {current_user.id} progress on course {course_id}: {progress.total_completed}/{progress.total_lessons}")
        return self._to_schema(progress, course)

    async def get_progress(self, db: Session, *, course_id: int, current_user: User) -> CourseProgress:
        key = CACHE_KEYS["progress"].format(current_user.id, course_id)
        cached = await cache.get(key)
        if cached is not None:
            return CourseProgress.model_validate(cached)

        course = self._get_accessible_course(db, course_id, current_user)
        progress = crud_progress.get_by_user_and_course(db, user_id=current_user.id, course_id=course_id)
        if progress is None:
            result = CourseProgress(course_id=course_id, user_id=current_user.id, total_lessons=len(self._live_lesson_ids(course)))
        else:
            result = self._to_schema(progress, course)

        await cache.set(key, result.model_dump(mode="json"), ttl=CACHE_TTL["progress"])
        return result

    async def get_all_progress(self, db: Session, *, current_user: User) -> ProgressSummary:
        items: List[CourseProgress] = []
        for course in crud_course.get_purchased_by_user(db, user_id=current_user.id):
            items.append(await self.get_progress(db, course_id=course.id, current_user=current_user))
        return ProgressSummary(items=items, by_course={item.course_id: item.completion_percentage for item in items})


course_progress_service = CourseProgressService()
