from pydantic import BaseModel
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.order import Order

class CRUDOrder(CRUDBase[Order, BaseModel, BaseModel]):
    def get_by_payment_intent(self, db: Session, *, payment_intent_id: str) -> Optional[Order]:
        return db.query(self.model).filter(self.model.payment_intent_id == payment_intent_id).first()

    def get_multi(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[Order]:
        return (
            db.query(self.model)
            .options(selectinload(self.model.courses))
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

order = CRUDOrder(Order)
