from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.progress import ProgressUpdate, CourseProgress, ProgressSummary
from app.schemas.response import APIResponse
from app.services.course_progress import course_progress_service
from app.utils import deps

router = APIRouter()


@router.get("/", response_model=APIResponse[ProgressSummary])
async def get_all_progress(db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_user)):
    summary = await course_progress_service.get_all_progress(db, current_user=user)
    return APIResponse(message="Progress retrieved successfully", data=summary)


@router.get("/{course_id}", response_model=APIResponse[CourseProgress])
async def get_progress(course_id: int, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_user)):
    progress = await course_progress_service.get_progress(db, course_id=course_id, current_user=user)
    return APIResponse(message="Progress retrieved successfully", data=progress)


@router.put("/{course_id}", response_model=APIResponse[CourseProgress])
async def update_progress(
    course_id: int,
    progress_in: ProgressUpdate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user)
):
    progress = await course_progress_service.update_progress(db, course_id=course_id, progress_in=progress_in, current_user=user)
    return APIResponse(message="Progress updated successfully", data=progress)
