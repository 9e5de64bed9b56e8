from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.order import PaymentIntentCreate, PaymentIntentResponse, OrderCreate, Order
from app.schemas.response import APIResponse
from app.services.stripe import stripe_service
from app.utils import deps

router = APIRouter()


@router.post("/payment-intent", response_model=APIResponse[PaymentIntentResponse], status_code=status.HTTP_201_CREATED)
async def create_payment_intent(
    payload: PaymentIntentCreate,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user)
):
    intent = await stripe_service.create_payment_intent(db, payload=payload, current_user=user)
    return APIResponse(message="Payment intent created successfully", data=intent)


@router.post("/", response_model=APIResponse[Order], status_code=status.HTTP_201_CREATED)
async def create_order(order_in: OrderCreate, db: Session = Depends(deps.get_db), user: User = Depends(deps.get_current_user)):
    order = await stripe_service.create_order(db, order_in=order_in, current_user=user)
    return APIResponse(message="Order created successfully", data=order)


@router.get("/", response_model=APIResponse[List[Order]])
def get_all_orders(
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_admin),
    skip: int = 0,
    limit: int = 100
):
    return APIResponse(message="Orders retrieved successfully", data=stripe_service.list_orders(db, skip=skip, limit=limit))
