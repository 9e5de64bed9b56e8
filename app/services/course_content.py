"""Section and lesson authoring for a course.

Every mutation is a read-modify-write of the whole course aggregate: the course
row is dirtied so its ``version`` column is compared and bumped on commit. A
lost race surfaces as ``StaleDataError`` and ``retry_on_conflict`` replays the
operation from a fresh read. The cached snapshot is dropped only after the
commit succeeded, and the returned view is read back through the cache.
"""
import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.decorators import retry_on_conflict
from app.crud.course import course as crud_course
from app.crud.progress import progress as crud_progress
from app.models.course import Course
from app.models.lesson import Lesson
from app.models.section import Section
from app.models.user import User
from app.schemas.course import CourseView
from app.schemas.lesson import LessonCreate, LessonUpdate, LessonRef, LessonVideoUpload
from app.schemas.section import SectionCreate, SectionUpdate, SectionRef, OrderItem
from app.services import course_view
from app.services.cache_service import cache_service
from app.services.cloudinary import cloudinary_service, LESSON_FOLDER
from app.utils.permission import permission_helper

logger = logging.getLogger(__name__)

SECTION_NOT_FOUND = "Section does not exist"
LESSON_NOT_FOUND = "Lesson does not exist"


class CourseContentService:

    def _get_course_for_update(self, db: Session, course_id: int, current_user: User) -> Course:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
        permission_helper.require_course_management_permission(current_user, course)
        return course

    def _find_section(self, course: Course, section_id: int) -> Section:
        section = next((s for s in course.sections if s.id == section_id), None)
        if not section:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SECTION_NOT_FOUND)
        return section

    def _find_lesson(self, course: Course, lesson_id: int) -> Lesson:
        lesson = next((l for l in course.lessons if l.id == lesson_id), None)
        if not lesson:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=LESSON_NOT_FOUND)
        return lesson

    async def _commit(self, db: Session, course: Course, action: str) -> CourseView:
        course_id = course.id
        course.mark_content_changed()
        db.commit()
        await cache_service.invalidate_course_cache(course_id)
        logger.info(f"Course {course_id}: {action}")

        snapshot = await cache_service.get_course_snapshot(db, course_id)
        return course_view.instructor_view(snapshot)

    @retry_on_conflict()
    async def create_section(self, db: Session, *, course_id: int, section_in: SectionCreate, current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)

        section = Section(
            title=section_in.title,
            description=section_in.description,
            order=len(course.sections) + 1,
            is_published=False,
        )
        # an untitled lesson reserves the section's first slot until a real lesson arrives
        section.lessons.append(Lesson(order=1))
        course.sections.append(section)
        return await self._commit(db, course, f"created section '{section.title}'")

    @retry_on_conflict()
    async def update_section(self, db: Session, *, course_id: int, section_in: SectionUpdate, current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)
        section = self._find_section(course, section_in.section_id)

        for field, value in section_in.model_dump(exclude_unset=True, exclude={"section_id"}).items():
            if field == "title" and not value:
                continue
            setattr(section, field, value)
        return await self._commit(db, course, f"updated section {section.id}")

    @retry_on_conflict()
    async def reorder_sections(self, db: Session, *, course_id: int, items: List[OrderItem], current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)

        sections = {section.id: section for section in course.sections}
        for item in items:
            if item.id in sections:
                sections[item.id].order = item.order
        return await self._commit(db, course, "reordered sections")

    @retry_on_conflict()
    async def create_lesson(self, db: Session, *, course_id: int, lesson_in: LessonCreate, current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)
        section = self._find_section(course, lesson_in.section_id)

        data = lesson_in.model_dump(exclude={"section_id", "video"})
        if lesson_in.video:
            data["video_public_id"] = lesson_in.video.public_id
            data["video_url"] = lesson_in.video.url

        lesson = section.placeholder
        if lesson is not None:
            for field, value in data.items():
                setattr(lesson, field, value)
            lesson.order = 1
        else:
            lesson = Lesson(order=len(section.lessons) + 1, **data)
            section.lessons.append(lesson)
        return await self._commit(db, course, f"created lesson '{lesson.title}' in section {section.id}")

    @retry_on_conflict()
    async def update_lesson(self, db: Session, *, course_id: int, lesson_in: LessonUpdate, current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)
        lesson = self._find_lesson(course, lesson_in.lesson_id)

        data = lesson_in.model_dump(exclude_unset=True, exclude={"lesson_id", "video", "is_published"})
        if data.get("title") is None:
            data.pop("title", None)
        if lesson_in.video:
            data["video_public_id"] = lesson_in.video.public_id
            data["video_url"] = lesson_in.video.url

        # checked before anything is written so a rejected update leaves the lesson untouched
        complete = self._has_required_fields(
            data.get("title", lesson.title),
            data.get("description", lesson.description),
            data.get("video_url", lesson.video_url),
        )
        if lesson_in.is_published and not complete:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

        for field, value in data.items():
            setattr(lesson, field, value)
        if lesson_in.is_published:
            lesson.is_published = True
        elif not complete:
            lesson.is_published = False
        return await self._commit(db, course, f"updated lesson {lesson.id}")

    @staticmethod
    def _has_required_fields(title, description, video_url) -> bool:
        return bool(title and description and video_url)

    @retry_on_conflict()
    async def reorder_lessons(self, db: Session, *, course_id: int, items: List[OrderItem], current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)

        lessons = {lesson.id: lesson for lesson in course.lessons}
        for item in items:
            if item.id in lessons:
                lessons[item.id].order = item.order
        return await self._commit(db, course, "reordered lessons")

    @retry_on_conflict()
    async def delete_lesson(self, db: Session, *, course_id: int, lesson_in: LessonRef, current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)
        lesson = self._find_lesson(course, lesson_in.lesson_id)
        section = lesson.section

        crud_progress.drop_completed_lessons(db, course_id=course.id, lesson_ids=[lesson.id])
        if len(section.lessons) == 1:
            # a section is never left without a slot
            lesson.clear_content()
            section.is_published = False
            action = f"cleared last lesson {lesson.id} of section {section.id}"
        else:
            section.lessons.remove(lesson)
            action = f"deleted lesson {lesson.id}"
        return await self._commit(db, course, action)

    @retry_on_conflict()
    async def publish_lesson(self, db: Session, *, course_id: int, lesson_in: LessonRef, current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)
        lesson = self._find_lesson(course, lesson_in.lesson_id)

        if not self._has_required_fields(lesson.title, lesson.description, lesson.video_url):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")
        lesson.is_published = True
        return await self._commit(db, course, f"published lesson {lesson.id}")

    @retry_on_conflict()
    async def unpublish_lesson(self, db: Session, *, course_id: int, lesson_in: LessonRef, current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)
        lesson = self._find_lesson(course, lesson_in.lesson_id)

        lesson.is_published = False
        return await self._commit(db, course, f"unpublished lesson {lesson.id}")

    @retry_on_conflict()
    async def publish_section(self, db: Session, *, course_id: int, section_in: SectionRef, current_user: User) -> CourseView:
        return await self._set_section_published(db, course_id, section_in.section_id, current_user, True)

    @retry_on_conflict()
    async def unpublish_section(self, db: Session, *, course_id: int, section_in: SectionRef, current_user: User) -> CourseView:
        return await self._set_section_published(db, course_id, section_in.section_id, current_user, False)

    async def _set_section_published(self, db: Session, course_id: int, section_id: int, current_user: User, published: bool) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)
        section = self._find_section(course, section_id)

        section.is_published = published
        return await self._commit(db, course, f"{'published' if published else 'unpublished'} section {section.id}")

    @retry_on_conflict()
    async def delete_section(self, db: Session, *, course_id: int, section_in: SectionRef, current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)
        section = self._find_section(course, section_in.section_id)

        crud_progress.drop_completed_lessons(db, course_id=course.id, lesson_ids=[lesson.id for lesson in section.lessons])
        course.sections.remove(section)
        return await self._commit(db, course, f"deleted section {section_in.section_id}")

    async def upload_lesson_video(self, db: Session, *, course_id: int, upload: LessonVideoUpload, current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)
        previous_public_id = self._find_lesson(course, upload.lesson_id).video_public_id

        # upload once, outside the retried write
        asset = await cloudinary_service.upload_video(upload.video, folder=LESSON_FOLDER)
        view = await self._store_lesson_video(db, course_id=course_id, lesson_id=upload.lesson_id, asset=asset, current_user=current_user)
        if previous_public_id and previous_public_id != asset["public_id"]:
            await cloudinary_service.destroy(previous_public_id, resource_type="video")
        return view

    @retry_on_conflict()
    async def _store_lesson_video(self, db: Session, *, course_id: int, lesson_id: int, asset: dict, current_user: User) -> CourseView:
        course = self._get_course_for_update(db, course_id, current_user)
        lesson = self._find_lesson(course, lesson_id)

        lesson.video_public_id = asset["public_id"]
        lesson.video_url = asset["url"]
        return await self._commit(db, course, f"stored new video for lesson {lesson.id}")


course_content_service = CourseContentService()
