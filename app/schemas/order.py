from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

class PaymentIntentCreate(BaseModel):
    course_ids: List[int] = Field(..., min_length=1)

class PaymentIntentResponse(BaseModel):
    payment_intent_id: str
    client_secret: Optional[str] = None
    amount: int
    currency: str

class OrderCreate(BaseModel):
    course_ids: List[int] = Field(..., min_length=1)
    payment_intent_id: str

class Order(BaseModel):
    id: int
    user_id: int
    course_ids: List[int] = Field(default_factory=list)
    payment_intent_id: Optional[str] = None
    payment_info: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
