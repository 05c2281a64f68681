from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.application import Application
from backend.app.models.donation import Donation
from backend.app.models.notification import Notification
from backend.app.models.payment import Payment
from backend.app.models.quotation import Quotation
from backend.app.models.receipt import Receipt
from backend.app.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def seed(*rows):
    db = SessionLocal()
    try:
        for row in rows:
            db.add(row)
            db.commit()
    finally:
        db.close()


def load(model, row_id):
    db = SessionLocal()
    try:
        return db.query(model).filter(model.id == row_id).first()
    finally:
        db.close()


def stripe_event(event_type, data_object):
    return {"id": "evt_1", "type": event_type, "data": {"object": data_object}}


def test_payment_intent_succeeded_settles_application_payment():
    seed(
        User(id="u1", email="nurse@example.com"),
        Application(id="a1", user_id="u1"),
        Payment(id="p1", application_id="a1", user_id="u1", payment_type="step1", amount=Decimal("267.99")),
    )
    client = TestClient(app)

    resp = client.post(
        "/webhooks/stripe",
        json=stripe_event("payment_intent.succeeded", {"id": "pi_1", "metadata": {"payment_id": "p1"}}),
    )

    assert resp.status_code == 200
    assert resp.json()["received"] is True
    payment = load(Payment, "p1")
    assert payment.status == "paid"
    assert payment.stripe_payment_intent_id == "pi_1"
    db = SessionLocal()
    try:
        assert db.query(Receipt).filter(Receipt.payment_id == "p1").count() == 1
        notification = db.query(Notification).filter(Notification.user_id == "u1").one()
        assert notification.title == "Payment Successful"
    finally:
        db.close()


def test_duplicate_success_event_is_harmless():
    seed(
        User(id="u1", email="nurse@example.com"),
        Application(id="a1", user_id="u1"),
        Payment(id="p1", application_id="a1", user_id="u1", payment_type="step1", amount=Decimal("267.99")),
    )
    client = TestClient(app)
    body = stripe_event("payment_intent.succeeded", {"id": "pi_1", "metadata": {"payment_id": "p1"}})

    client.post("/webhooks/stripe", json=body)
    client.post("/webhooks/stripe", json=body)

    db = SessionLocal()
    try:
        assert db.query(Receipt).count() == 1
        assert db.query(Notification).count() == 1
    finally:
        db.close()


def test_payment_intent_succeeded_marks_quotation_paid():
    seed(Quotation(id="q1", amount=Decimal("99.00")))
    client = TestClient(app)

    client.post(
        "/webhooks/stripe",
        json=stripe_event("payment_intent.succeeded", {"id": "pi_9", "metadata": {"quotation_id": "q1"}}),
    )

    quotation = load(Quotation, "q1")
    assert quotation.status == "paid"
    assert quotation.stripe_payment_intent_id == "pi_9"


def test_checkout_session_completed_completes_donation():
    seed(Donation(id="d1", amount=Decimal("25.00"), stripe_payment_intent_id="cs_1"))
    client = TestClient(app)

    client.post("/webhooks/stripe", json=stripe_event("checkout.session.completed", {"id": "cs_1", "metadata": {}}))

    assert load(Donation, "d1").status == "completed"


def test_payment_failed_marks_pending_payment_failed():
    seed(
        User(id="u1", email="nurse@example.com"),
        Application(id="a1", user_id="u1"),
        Payment(id="p1", application_id="a1", user_id="u1", payment_type="step1", amount=Decimal("267.99")),
    )
    client = TestClient(app)

    client.post(
        "/webhooks/stripe",
        json=stripe_event(
            "payment_intent.payment_failed",
            {"id": "pi_1", "metadata": {"payment_id": "p1"}, "last_payment_error": {"message": "declined"}},
        ),
    )

    assert load(Payment, "p1").status == "failed"


def test_unhandled_event_is_acknowledged():
    client = TestClient(app)

    resp = client.post("/webhooks/stripe", json=stripe_event("customer.created", {"id": "cus_1"}))

    assert resp.status_code == 200
    assert resp.json() == {"received": True}


def test_bad_signature_is_rejected(monkeypatch):
    monkeypatch.setattr(get_settings(), "stripe_webhook_secret", "whsec_test")
    client = TestClient(app)

    resp = client.post(
        "/webhooks/stripe",
        json=stripe_event("payment_intent.succeeded", {"id": "pi_1"}),
        headers={"Stripe-Signature": "t=1,v1=bogus"},
    )

    assert resp.status_code == 400
