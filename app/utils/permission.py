from fastapi import HTTPException, status

from app.models.user import User
from app.models.course import Course


class PermissionHelper:
    @staticmethod
    def is_author(user: User, course: Course) -> bool:
        return course.author_id == user.id

    @staticmethod
    def is_purchaser(user: User, course: Course) -> bool:
        # works for both the ORM course and a cached CourseSnapshot
        return user.id in course.purchaser_ids

    @staticmethod
    def can_manage_course(user: User, course: Course) -> bool:
        return user.is_admin or PermissionHelper.is_author(user, course)

    @staticmethod
    def can_access_content(user: User, course: Course) -> bool:
        if PermissionHelper.can_manage_course(user, course):
            return True
        return PermissionHelper.is_purchaser(user, course)

    @staticmethod
    def require_course_management_permission(user: User, course: Course):
        if not PermissionHelper.can_manage_course(user, course):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to manage this course."
            )

    @staticmethod
    def require_content_access(user: User, course: Course):
        if not PermissionHelper.can_access_content(user, course):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not eligible to access this course"
            )


permission_helper = PermissionHelper()
