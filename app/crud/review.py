from sqlalchemy.orm import Session
from typing import Optional

from app.crud.base import CRUDBase
from app.models.course_review import CourseReview, ReviewReply
from app.schemas.review import ReviewCreate, ReviewReplyCreate

class CRUDReview(CRUDBase[CourseReview, ReviewCreate, ReviewCreate]):
    def get_by_user_and_course(self, db: Session, *, user_id: int, course_id: int) -> Optional[CourseReview]:
        return db.query(self.model).filter(self.model.user_id == user_id, self.model.course_id == course_id).first()

    def get_in_course(self, db: Session, *, course_id: int, review_id: int) -> Optional[CourseReview]:
        return db.query(self.model).filter(self.model.id == review_id, self.model.course_id == course_id).first()

class CRUDReviewReply(CRUDBase[ReviewReply, ReviewReplyCreate, ReviewReplyCreate]):
    pass

review = CRUDReview(CourseReview)
review_reply = CRUDReviewReply(ReviewReply)
