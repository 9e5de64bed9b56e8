"""Viewer-scoped projections of a course snapshot.

Every function here is pure: it takes the cached ``CourseSnapshot`` and returns
a new response model, so a filtered copy of a course is never written back to
the store or the cache.
"""
from itertools import groupby
from typing import List, Tuple

from app.core.constants import QUIZ_SECTION_ITEM_PREFIX
from app.schemas.course import (
    CourseContentItem, CourseListItem, CourseOutlineItem, CourseSnapshot, CourseSummary,
    CourseView, PurchasedCourse,
)
from app.schemas.lesson import Lesson
from app.schemas.quiz import QuizPublic
from app.schemas.section import Section

SectionLesson = Tuple[Section, Lesson]


def is_visible(section: Section, lesson: Lesson) -> bool:
    """A lesson is shown to learners only once it is complete and published at both levels."""
    return bool(
        lesson.video and lesson.video.url
        and lesson.title
        and lesson.description
        and lesson.is_published
        and section.is_published
        and section.title
    )


def sort_key(pair: SectionLesson) -> tuple:
    section, lesson = pair
    # ties fall back to insertion order
    return (section.order, section.id, lesson.order, lesson.id)


def ordered_lessons(snapshot: CourseSnapshot, visible_only: bool = True) -> List[SectionLesson]:
    pairs = [
        (section, lesson)
        for section in snapshot.sections
        for lesson in section.lessons
        if not visible_only or is_visible(section, lesson)
    ]
    return sorted(pairs, key=sort_key)


def _summary(snapshot: CourseSnapshot) -> dict:
    return snapshot.model_dump(include=set(CourseSummary.model_fields))


def _content_item(section: Section, lesson: Lesson) -> CourseContentItem:
    return CourseContentItem(
        id=lesson.id,
        section_id=section.id,
        section_title=section.title,
        section_description=section.description,
        section_order=section.order,
        is_section_published=section.is_published,
        lesson_order=lesson.order,
        title=lesson.title,
        description=lesson.description,
        video=lesson.video,
        video_length=lesson.video_length,
        video_player=lesson.video_player,
        suggestion=lesson.suggestion,
        links=lesson.links,
        is_free=lesson.is_free,
        is_published=lesson.is_published,
        questions=lesson.questions,
    )


def _outline_item(section: Section, lesson: Lesson) -> CourseOutlineItem:
    return CourseOutlineItem(
        id=lesson.id,
        section_id=section.id,
        section_title=section.title,
        section_order=section.order,
        lesson_order=lesson.order,
        title=lesson.title,
        video_length=lesson.video_length,
        is_free=lesson.is_free,
    )


def preview_view(snapshot: CourseSnapshot) -> CourseView:
    """What anyone may see before buying: free videos only, no lesson extras."""
    items = []
    for section, lesson in ordered_lessons(snapshot):
        item = _content_item(section, lesson)
        if not lesson.is_free:
            item.video = None
        item.suggestion = None
        item.links = []
        item.questions = []
        items.append(item)
    return CourseView(**_summary(snapshot), reviews=snapshot.reviews, course_data=items)


def full_view(snapshot: CourseSnapshot) -> CourseView:
    """The purchased course: every visible lesson with its video, plus one quiz block per section."""
    items: List[CourseContentItem] = []
    pairs = ordered_lessons(snapshot)
    for _, group in groupby(pairs, key=lambda pair: pair[0].id):
        group = list(group)
        section = group[0][0]
        quizzes = [quiz for quiz in section.quizzes if quiz.is_published]
        quiz_duration = sum(quiz.duration for quiz in quizzes)
        section_duration = sum(lesson.video_length or 0 for _, lesson in group) + quiz_duration

        for _, lesson in group:
            item = _content_item(section, lesson)
            item.section_duration = section_duration
            items.append(item)

        if quizzes:
            items.append(CourseContentItem(
                id=f"{QUIZ_SECTION_ITEM_PREFIX}{section.id}",
                section_id=section.id,
                section_title=section.title,
                section_description=section.description,
                section_order=section.order,
                is_section_published=section.is_published,
                lesson_order=max(lesson.order for _, lesson in group) + 1,
                title=f"Quiz for {section.title}",
                video_length=quiz_duration,
                is_published=True,
                is_quiz=True,
                quizzes=[QuizPublic.model_validate(quiz.model_dump()) for quiz in quizzes],
                section_duration=section_duration,
            ))
    return CourseView(**_summary(snapshot), reviews=snapshot.reviews, course_data=items)


def instructor_view(snapshot: CourseSnapshot) -> CourseView:
    """Everything the author works with, placeholders and drafts included."""
    items = [_content_item(section, lesson) for section, lesson in ordered_lessons(snapshot, visible_only=False)]
    return CourseView(**_summary(snapshot), reviews=snapshot.reviews, course_data=items)


def catalogue_item(snapshot: CourseSnapshot) -> CourseListItem:
    outline = [_outline_item(section, lesson) for section, lesson in ordered_lessons(snapshot)]
    return CourseListItem(**_summary(snapshot), course_data=outline)


def purchased_item(snapshot: CourseSnapshot) -> PurchasedCourse:
    pairs = ordered_lessons(snapshot)
    minutes = sum(lesson.video_length or 0 for _, lesson in pairs)
    return PurchasedCourse(
        **_summary(snapshot),
        course_data=[_outline_item(section, lesson) for section, lesson in pairs],
        lesson_count=len(pairs),
        total_duration=f"{minutes / 60:.1f} hours",
    )
