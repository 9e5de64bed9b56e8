import json
from types import SimpleNamespace

import pytest
import stripe
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.crud.course import course as crud_course
from app.models.notification import Notification
from tests.helpers.asserts import api_call, assert_error, auth_headers
from tests.helpers.builders import build_published_course, grant_purchase


@pytest.fixture
def stripe_intents(monkeypatch):
    """Payment intents kept in memory instead of on Stripe."""
    intents = {}

    def fake_create(amount, currency, metadata, **kwargs):
        intent_id = f"pi_{len(intents) + 1}"
        intents[intent_id] = SimpleNamespace(
            id=intent_id, client_secret=f"{intent_id}_secret", status="requires_payment_method",
            amount=amount, currency=currency, metadata=metadata,
        )
        return intents[intent_id]

    def fake_retrieve(intent_id, **kwargs):
        return intents[intent_id]

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", fake_retrieve)
    return intents


@pytest.fixture
def webhook_events(monkeypatch):
    """Signature check replaced by a lookup of the raw payload."""
    def fake_construct_event(payload, sig_header, secret):
        if sig_header != "valid":
            raise stripe.SignatureVerificationError("No signatures found matching the expected signature", sig_header)
        return json.loads(payload)

    monkeypatch.setattr(stripe.Webhook, "construct_event", fake_construct_event)


def _succeeded_event(intent_id: str, user_id: int, course_ids) -> dict:
    return {
        "type": "payment_intent.succeeded",
        "data": {"object": {
            "id": intent_id,
            "status": "succeeded",
            "metadata": {"user_id": str(user_id), "course_ids": ",".join(str(c) for c in course_ids)},
        }},
    }


def _post_event(client: TestClient, event: dict, signature: str = "valid"):
    return client.post("/webhooks/stripe", content=json.dumps(event), headers={"stripe-signature": signature})


def test_payment_intent_charges_the_course_price(client: TestClient, db_session: Session, instructor, learner, stripe_intents):
    built = build_published_course(client, auth_headers(instructor), db_session)

    data = api_call(
        client, "POST", "/orders/payment-intent", headers=auth_headers(learner), json={"course_ids": [built["course_id"]]}
    ).json()["data"]

    assert data["amount"] == 4950
    assert data["client_secret"] == f"{data['payment_intent_id']}_secret"
    assert stripe_intents[data["payment_intent_id"]].metadata == {
        "user_id": str(learner.id), "course_ids": str(built["course_id"])
    }


def test_payment_intent_rejects_owned_or_unknown_courses(client: TestClient, db_session: Session, instructor, learner, stripe_intents):
    built = build_published_course(client, auth_headers(instructor), db_session)
    grant_purchase(db_session, built["course_id"], learner)

    r = client.post("/orders/payment-intent", headers=auth_headers(learner), json={"course_ids": [built["course_id"]]})
    assert_error(r, 400, "You have already purchased this course")
    r = client.post("/orders/payment-intent", headers=auth_headers(learner), json={"course_ids": [9999]})
    assert_error(r, 404, "Course not found")
    assert stripe_intents == {}


def test_create_order_grants_access_once(
    client: TestClient, db_session: Session, instructor, learner, stripe_intents, sent_emails
):
    built = build_published_course(client, auth_headers(instructor), db_session)
    headers = auth_headers(learner)
    intent_id = api_call(
        client, "POST", "/orders/payment-intent", headers=headers, json={"course_ids": [built["course_id"]]}
    ).json()["data"]["payment_intent_id"]
    stripe_intents[intent_id].status = "succeeded"

    payload = {"course_ids": [built["course_id"]], "payment_intent_id": intent_id}
    order = api_call(client, "POST", "/orders/", headers=headers, json=payload).json()["data"]
    assert order["course_ids"] == [built["course_id"]]
    assert order["user_id"] == learner.id

    again = api_call(client, "POST", "/orders/", headers=headers, json=payload).json()["data"]
    assert again["id"] == order["id"]

    db_session.expire_all()
    assert crud_course.get(db_session, id=built["course_id"]).purchased == 1
    notifications = db_session.query(Notification).filter(Notification.author_id == instructor.id).all()
    assert [n.title for n in notifications] == ["New Order"]
    assert [(m["to_email"], m["template_name"]) for m in sent_emails] == [(learner.email, "order-confirmation.html")]
    assert sent_emails[0]["context"]["order_id"] == order["id"]

    content = api_call(client, "GET", f"/courses/purchased/{built['course_id']}", headers=headers).json()["data"]
    assert content["id"] == built["course_id"]


def test_create_order_requires_a_succeeded_intent(client: TestClient, db_session: Session, instructor, learner, stripe_intents):
    built = build_published_course(client, auth_headers(instructor), db_session)
    headers = auth_headers(learner)
    intent_id = api_call(
        client, "POST", "/orders/payment-intent", headers=headers, json={"course_ids": [built["course_id"]]}
    ).json()["data"]["payment_intent_id"]

    r = client.post("/orders/", headers=headers, json={"course_ids": [built["course_id"]], "payment_intent_id": intent_id})
    assert_error(r, 400, "Payment not authorized!")
    assert_error(client.get(f"/courses/purchased/{built['course_id']}", headers=headers), 403)


def test_stripe_outage_is_a_bad_gateway(client: TestClient, db_session: Session, instructor, learner, monkeypatch):
    built = build_published_course(client, auth_headers(instructor), db_session)

    def unreachable(*args, **kwargs):
        raise stripe.APIConnectionError("Network error communicating with Stripe")

    monkeypatch.setattr(stripe.PaymentIntent, "create", unreachable)
    r = client.post("/orders/payment-intent", headers=auth_headers(learner), json={"course_ids": [built["course_id"]]})
    body = assert_error(r, 502)
    assert body["error"]["code"] == "UPSTREAM_FAILURE"


def test_only_admins_list_orders(client: TestClient, db_session: Session, instructor, learner, admin, stripe_intents, webhook_events):
    built = build_published_course(client, auth_headers(instructor), db_session)
    _post_event(client, _succeeded_event("pi_hook", learner.id, [built["course_id"]]))

    orders = api_call(client, "GET", "/orders/", headers=auth_headers(admin)).json()["data"]
    assert [o["payment_intent_id"] for o in orders] == ["pi_hook"]
    assert_error(client.get("/orders/", headers=auth_headers(learner)), 403)


def test_webhook_fulfils_a_payment_once(client: TestClient, db_session: Session, instructor, learner, webhook_events, sent_emails):
    built = build_published_course(client, auth_headers(instructor), db_session)
    event = _succeeded_event("pi_hook", learner.id, [built["course_id"]])

    first = _post_event(client, event)
    assert first.status_code == 200
    assert first.json()["status"] == "success"
    assert first.json()["order_id"] is not None

    second = _post_event(client, event)
    assert second.json()["order_id"] == first.json()["order_id"]

    db_session.expire_all()
    assert crud_course.get(db_session, id=built["course_id"]).purchased == 1
    assert len(sent_emails) == 1
    api_call(client, "GET", f"/courses/purchased/{built['course_id']}", headers=auth_headers(learner))


def test_webhook_ignores_other_events_and_rejects_bad_signatures(client: TestClient, db_session: Session, learner, webhook_events):
    r = _post_event(client, {"type": "charge.refunded", "data": {"object": {}}})
    assert r.json() == {"status": "success", "order_id": None}

    r = _post_event(client, _succeeded_event("pi_forged", learner.id, [1]), signature="forged")
    assert_error(r, 400, "Invalid webhook signature")
