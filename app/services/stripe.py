import json
import logging
from typing import List, Optional

import stripe
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.decorators import retry_on_conflict
from app.crud.course import course as crud_course
from app.crud.order import order as crud_order
from app.crud.user import user as crud_user
from app.models.course import Course
from app.models.order import Order as OrderModel
from app.models.user import User
from app.schemas.order import PaymentIntentCreate, PaymentIntentResponse, OrderCreate, Order
from app.services.cache_service import cache_service
from app.services.email import EmailService
from app.services.notification import notification_service

logger = logging.getLogger(__name__)

stripe.api_key = settings.STRIPE_SECRET_KEY

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


class StripeService:

    async def _make_request(self, stripe_api_call, *args, **kwargs):
        try:
            return stripe_api_call(*args, **kwargs)
        except stripe.StripeError as e:
            logger.error(f"Stripe call {getattr(stripe_api_call, '__qualname__', stripe_api_call)} failed: {e}")
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Stripe error: {e.user_message or str(e)}")

    def _resolve_courses(self, db: Session, course_ids: List[int], user: User) -> List[Course]:
        courses = crud_course.get_by_ids(db, list(dict.fromkeys(course_ids)))
        found = {course.id for course in courses}
        missing = [course_id for course_id in course_ids if course_id not in found]
        if missing:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
        for course in courses:
            if user.id in course.purchaser_ids:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You have already purchased this course")
        return courses

    async def create_payment_intent(self, db: Session, *, payload: PaymentIntentCreate, current_user: User) -> PaymentIntentResponse:
        courses = self._resolve_courses(db, payload.course_ids, current_user)
        amount = int(round(sum(course.price for course in courses) * 100))

        intent = await self._make_request(
            stripe.PaymentIntent.create,
            amount=amount,
            currency=settings.STRIPE_CURRENCY,
            automatic_payment_methods={"enabled": True},
            metadata={
                "user_id": str(current_user.id),
                "course_ids": ",".join(str(course.id) for course in courses),
            },
        )
        logger.info(f"Created payment intent {intent.id} for user {current_user.id}")
        return PaymentIntentResponse(
            payment_intent_id=intent.id,
            client_secret=getattr(intent, "client_secret", None),
            amount=amount,
            currency=settings.STRIPE_CURRENCY,
        )

    async def create_order(self, db: Session, *, order_in: OrderCreate, current_user: User) -> Order:
        existing = crud_order.get_by_payment_intent(db, payment_intent_id=order_in.payment_intent_id)
        if existing:
            if existing.user_id != current_user.id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment not authorized!")
            return Order.model_validate(existing)

        intent = await self._make_request(stripe.PaymentIntent.retrieve, order_in.payment_intent_id)
        if intent.status != "succeeded":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment not authorized!")
        metadata = intent.metadata or {}
        if metadata.get("user_id") and metadata.get("user_id") != str(current_user.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment not authorized!")

        self._resolve_courses(db, order_in.course_ids, current_user)
        order_id = await self._grant_purchase(
            db,
            user_id=current_user.id,
            course_ids=order_in.course_ids,
            payment_intent_id=intent.id,
            payment_info=json.dumps({"id": intent.id, "status": intent.status}),
        )
        await self._after_purchase(db, order_id=order_id, user=current_user)
        return Order.model_validate(crud_order.get(db, id=order_id))

    async def handle_webhook(self, db: Session, *, payload: bytes, signature: Optional[str]) -> Optional[Order]:
        try:
            event = stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Rejected Stripe webhook: {e}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook signature")

        if event["type"] != PAYMENT_SUCCEEDED:
            logger.info(f"Ignoring Stripe event {event['type']}")
            return None

        intent = event["data"]["object"]
        existing = crud_order.get_by_payment_intent(db, payment_intent_id=intent["id"])
        if existing:
            logger.info(f"Payment intent {intent['id']} already fulfilled by order {existing.id}")
            return Order.model_validate(existing)

        metadata = intent.get("metadata") or {}
        user = crud_user.get(db, id=int(metadata.get("user_id", 0) or 0))
        course_ids = [int(course_id) for course_id in (metadata.get("course_ids") or "").split(",") if course_id]
        if not user or not course_ids:
            logger.error(f"Payment intent {intent['id']} carries no usable purchase metadata")
            return None

        owned = set(course.id for course in user.purchased_courses)
        course_ids = [course_id for course_id in course_ids if course_id not in owned]
        if not course_ids:
            return None

        order_id = await self._grant_purchase(
            db,
            user_id=user.id,
            course_ids=course_ids,
            payment_intent_id=intent["id"],
            payment_info=json.dumps({"id": intent["id"], "status": intent.get("status")}),
        )
        await self._after_purchase(db, order_id=order_id, user=user)
        return Order.model_validate(crud_order.get(db, id=order_id))

    @retry_on_conflict()
    async def _grant_purchase(
        self, db: Session, *, user_id: int, course_ids: List[int], payment_intent_id: str, payment_info: str
    ) -> int:
        user = crud_user.get(db, id=user_id)
        courses = crud_course.get_by_ids(db, list(dict.fromkeys(course_ids)))
        for course in courses:
            if user not in course.purchasers:
                course.purchasers.append(user)
                course.purchased = (course.purchased or 0) + 1

        new_order = OrderModel(user_id=user.id, payment_intent_id=payment_intent_id, payment_info=payment_info, courses=courses)
        db.add(new_order)
        db.commit()
        logger.info(f"Order {new_order.id}: user {user_id} purchased courses {[c.id for c in courses]}")
        return new_order.id

    async def _after_purchase(self, db: Session, *, order_id: int, user: User):
        new_order = crud_order.get(db, id=order_id)
        for course in new_order.courses:
            await cache_service.invalidate_course_cache(course.id)
            await notification_service.notify_author(
                db,
                user_id=user.id,
                author_id=course.author_id,
                course_id=course.id,
                title="New Order",
                message=f"You have a new order from {course.name}",
            )
        await cache_service.invalidate_user_cache(user.id)

        await EmailService.send_order_confirmation(
            to_email=user.email,
            name=user.name,
            order_id=new_order.id,
            courses=[{"name": course.name, "price": course.price} for course in new_order.courses],
            total=sum(course.price for course in new_order.courses),
        )

    def list_orders(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[Order]:
        return [Order.model_validate(o) for o in crud_order.get_multi(db, skip=skip, limit=limit)]


stripe_service = StripeService()
