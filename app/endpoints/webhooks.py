from fastapi import APIRouter, Request, Depends
from sqlalchemy.orm import Session

from app.utils import deps
from app.services.stripe import stripe_service

router = APIRouter()

@router.post("/webhooks/stripe")
async def stripe_webhook(request: Request, db: Session = Depends(deps.get_db)):
    payload = await request.body()
    sig_header = request.headers.get('stripe-signature')

    order = await stripe_service.handle_webhook(db, payload=payload, signature=sig_header)
    return {"status": "success", "order_id": order.id if order else None}
