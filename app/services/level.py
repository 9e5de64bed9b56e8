import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.cache_config import CACHE_KEYS, CACHE_TTL
from app.core.constants import CourseLevelEnum
from app.crud.level import level as crud_level
from app.models.user import User
from app.schemas.level import Level, LevelCreate
from app.services.cache_service import cache_service

logger = logging.getLogger(__name__)

BUILTIN_LEVELS = [level.value for level in CourseLevelEnum]


class LevelService:

    def is_known(self, db: Session, name: str) -> bool:
        name = name.lower()
        return name in BUILTIN_LEVELS or crud_level.get_by_name(db, name=name) is not None

    async def create_level(self, db: Session, *, level_in: LevelCreate, current_user: User) -> Level:
        name = (level_in.name or "").strip().lower()
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please provide a level")
        if self.is_known(db, name):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Level already exists")

        level = crud_level.create(db, obj_in={"name": name})
        await cache_service.invalidate_level_cache()
        logger.info(f"User {current_user.id} created level '{name}'")
        return Level.model_validate(level)

    async def get_levels(self, db: Session) -> List[Level]:
        """Built-in levels first, then the stored ones in creation order."""
        key = CACHE_KEYS["levels"]
        cached = await cache.get(key)
        if cached is not None:
            return [Level.model_validate(item) for item in cached]

        levels = [Level(name=name, is_builtin=True) for name in BUILTIN_LEVELS]
        levels += [Level.model_validate(level) for level in crud_level.get_multi(db, limit=1000)]
        await cache.set(key, [level.model_dump(mode="json") for level in levels], ttl=CACHE_TTL["levels"])
        return levels


level_service = LevelService()
