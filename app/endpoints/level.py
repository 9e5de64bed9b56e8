from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.models.user import User
from app.schemas.level import Level, LevelCreate
from app.schemas.response import APIResponse
from app.services.level import level_service
from app.utils import deps

router = APIRouter()

@router.post("/", response_model=APIResponse[Level], status_code=status.HTTP_201_CREATED)
async def create_level(
    level_in: LevelCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_admin)
):
    level = await level_service.create_level(db, level_in=level_in, current_user=user)
    return APIResponse(message="Level created successfully", data=level)

@router.get("/", response_model=APIResponse[List[Level]])
async def get_levels(db: Session = Depends(deps.get_db)):
    levels = await level_service.get_levels(db)
    return APIResponse(message="Levels retrieved successfully", data=levels)
