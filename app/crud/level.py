from sqlalchemy.orm import Session
from typing import Optional

from app.crud.base import CRUDBase
from app.models.level import Level
from app.schemas.level import LevelCreate

class CRUDLevel(CRUDBase[Level, LevelCreate, LevelCreate]):
    def get_by_name(self, db: Session, *, name: str) -> Optional[Level]:
        return db.query(self.model).filter(self.model.name == name.lower()).first()

level = CRUDLevel(Level)
