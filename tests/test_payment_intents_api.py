from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe
from fastapi.testclient import TestClient

from backend.app.core.security import create_access_token
from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.application import Application
from backend.app.models.donation import Donation
from backend.app.models.payment import Payment
from backend.app.models.quotation import Quotation
from backend.app.models.user import User
from backend.app.services.stripe_gateway import StripeGateway, get_stripe_gateway


class FakeStripeGateway:
    def __init__(self, error=None):
        self.is_configured = True
        self.error = error
        self.intents = []
        self.sessions = []

    def create_payment_intent(self, *, amount, currency, metadata, description=None):
        if self.error is not None:
            raise self.error
        number = len(self.intents) + 1
        intent = SimpleNamespace(
            id=f"pi_test_{number}",
            client_secret=f"pi_test_{number}_secret_abc",
            amount=amount,
            currency=currency,
            metadata=metadata,
        )
        self.intents.append(intent)
        return intent

    def create_checkout_session(self, **params):
        if self.error is not None:
            raise self.error
        number = len(self.sessions) + 1
        session = SimpleNamespace(id=f"cs_test_{number}", url=f"https://checkout.stripe.com/c/cs_test_{number}", params=params)
        self.sessions.append(session)
        return session


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway():
    fake = FakeStripeGateway()
    app.dependency_overrides[get_stripe_gateway] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_stripe_gateway, None)


def create_user(email: str, role: str = "client") -> str:
    db = SessionLocal()
    try:
        user = User(email=email, role=role)
        db.add(user)
        db.commit()
        return user.id
    finally:
        db.close()


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id=user_id)}"}


def add_rows(*rows):
    db = SessionLocal()
    try:
        for row in rows:
            db.add(row)
        db.commit()
    finally:
        db.close()


def create_application_payment(user_id: str, payment_id: str = "p1", amount: str = "267.99"):
    add_rows(Application(id=f"app_{payment_id}", user_id=user_id))
    add_rows(
        Payment(
            id=payment_id,
            application_id=f"app_{payment_id}",
            user_id=user_id,
            payment_type="step1",
            amount=Decimal(amount),
            status="pending",
        )
    )


def load(model, row_id):
    db = SessionLocal()
    try:
        return db.query(model).filter(model.id == row_id).first()
    finally:
        db.close()


def test_card_donation_creates_payment_intent_and_stores_reference(gateway):
    add_rows(Donation(id="d1", amount=Decimal("5.00"), sponsorship_id="sp1"))
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"donation_id": "d1", "amount": 500, "use_checkout": False})

    assert resp.status_code == 200
    assert resp.json() == {"client_secret": "pi_test_1_secret_abc", "payment_intent_id": "pi_test_1"}
    assert gateway.intents[0].amount == 500
    assert gateway.intents[0].currency == "usd"
    assert gateway.intents[0].metadata == {"donation_id": "d1", "sponsorship_id": "sp1"}
    assert load(Donation, "d1").stripe_payment_intent_id == "pi_test_1"


def test_donation_without_override_charges_stored_amount(gateway):
    add_rows(Donation(id="d1", amount=Decimal("12.34")))
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"donation_id": "d1"})

    assert resp.status_code == 200
    assert gateway.intents[0].amount == 1234


def test_checkout_donation_below_minimum_is_rejected_without_processor_call(gateway):
    add_rows(Donation(id="d2", amount=Decimal("0.25")))
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"donation_id": "d2", "use_checkout": True})

    assert resp.status_code == 400
    body = resp.json()
    assert body["type"] == "VALIDATION_ERROR"
    assert "0.50" in body["error"]
    assert gateway.sessions == []
    assert load(Donation, "d2").stripe_payment_intent_id is None


def test_checkout_donation_override_of_ten_cents_is_rejected(gateway):
    add_rows(Donation(id="d1", amount=Decimal("5.00")))
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"donation_id": "d1", "amount": 10, "use_checkout": True})

    assert resp.status_code == 400
    assert resp.json()["type"] == "VALIDATION_ERROR"
    assert gateway.sessions == []


def test_checkout_donation_creates_session(gateway, monkeypatch):
    monkeypatch.setattr(get_settings(), "frontend_url", "https://portal.example.com")
    add_rows(Donation(id="d3", amount=Decimal("25.00"), donor_email="donor@example.com", message="Good luck!"))
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"donation_id": "d3", "use_checkout": True})

    assert resp.status_code == 200
    assert resp.json() == {"checkout_url": "https://checkout.stripe.com/c/cs_test_1", "session_id": "cs_test_1"}
    params = gateway.sessions[0].params
    assert params["mode"] == "payment"
    assert params["submit_type"] == "donate"
    assert params["customer_email"] == "donor@example.com"
    assert params["line_items"][0]["price_data"]["unit_amount"] == 2500
    assert params["line_items"][0]["price_data"]["product_data"]["name"] == "NCLEX Sponsorship Donation"
    assert params["line_items"][0]["price_data"]["product_data"]["description"].startswith("Good luck! - ")
    assert params["success_url"] == (
        "https://portal.example.com/donate/success?session_id={CHECKOUT_SESSION_ID}&donation_id=d3"
    )
    assert params["cancel_url"] == "https://portal.example.com/donate?canceled=true"
    assert load(Donation, "d3").stripe_payment_intent_id == "cs_test_1"
    assert gateway.intents == []


def test_checkout_urls_fall_back_to_request_origin(gateway):
    add_rows(Donation(id="d4", amount=Decimal("10.00")))
    client = TestClient(app)

    resp = client.post(
        "/payment-intents/",
        json={"donation_id": "d4", "use_checkout": True},
        headers={"Origin": "https://donate.example.org"},
    )

    assert resp.status_code == 200
    assert gateway.sessions[0].params["cancel_url"] == "https://donate.example.org/donate?canceled=true"


def test_multiple_references_are_rejected_before_any_lookup(gateway):
    user_id = create_user("client@example.com")
    create_application_payment(user_id, "p1", "267.99")
    add_rows(Quotation(id="q1", user_id=user_id, amount=Decimal("99.00")))
    client = TestClient(app)

    resp = client.post(
        "/payment-intents/",
        json={"payment_id": "p1", "quotation_id": "q1"},
        headers=auth_headers(user_id),
    )

    assert resp.status_code == 400
    assert resp.json()["type"] == "VALIDATION_ERROR"
    assert gateway.intents == []
    assert load(Payment, "p1").stripe_payment_intent_id is None
    assert load(Quotation, "q1").stripe_payment_intent_id is None


def test_payment_owned_by_another_user_is_not_found(gateway):
    owner_id = create_user("owner@example.com")
    other_id = create_user("other@example.com")
    create_application_payment(owner_id, "p1")
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"payment_id": "p1"}, headers=auth_headers(other_id))

    assert resp.status_code == 404
    body = resp.json()
    assert body["type"] == "NOT_FOUND"
    assert "267.99" not in str(body)
    assert gateway.intents == []


def test_application_payment_requires_authentication(gateway):
    owner_id = create_user("owner@example.com")
    create_application_payment(owner_id, "p1")
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"payment_id": "p1"})

    assert resp.status_code == 401
    assert resp.json()["type"] == "AUTH_ERROR"


def test_invalid_token_is_treated_as_anonymous(gateway):
    add_rows(Quotation(id="q1", amount=Decimal("50.00")))
    client = TestClient(app)

    resp = client.post(
        "/payment-intents/",
        json={"quotation_id": "q1"},
        headers={"Authorization": "Bearer not-a-token"},
    )

    assert resp.status_code == 401
    assert resp.json()["type"] == "AUTH_ERROR"


def test_quotation_payment_uses_quotation_amount(gateway):
    user_id = create_user("client@example.com")
    add_rows(Quotation(id="q1", user_id=None, amount=Decimal("150.50")))
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"quotation_id": "q1"}, headers=auth_headers(user_id))

    assert resp.status_code == 200
    assert gateway.intents[0].amount == 15050
    assert gateway.intents[0].metadata == {"user_id": user_id, "quotation_id": "q1"}
    assert load(Quotation, "q1").stripe_payment_intent_id == "pi_test_1"


def test_missing_reference_is_validation_error(gateway):
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"amount": 500})

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "Either payment_id, quotation_id, or donation_id is required",
        "type": "VALIDATION_ERROR",
    }


def test_malformed_json_is_validation_error(gateway):
    client = TestClient(app)

    resp = client.post(
        "/payment-intents/",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json()["type"] == "VALIDATION_ERROR"


def test_unknown_donation_is_not_found(gateway):
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"donation_id": "missing"})

    assert resp.status_code == 404
    assert resp.json()["type"] == "NOT_FOUND"


def test_missing_secret_key_is_config_error():
    add_rows(Donation(id="d1", amount=Decimal("5.00")))
    app.dependency_overrides[get_stripe_gateway] = lambda: StripeGateway(None)
    try:
        client = TestClient(app)
        resp = client.post("/payment-intents/", json={"donation_id": "d1"})
    finally:
        app.dependency_overrides.pop(get_stripe_gateway, None)

    assert resp.status_code == 500
    assert resp.json()["type"] == "CONFIG_ERROR"
    assert load(Donation, "d1").stripe_payment_intent_id is None


def test_processor_connection_error_is_timeout(gateway):
    gateway.error = stripe.APIConnectionError("Network error")
    add_rows(Donation(id="d1", amount=Decimal("5.00")))
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"donation_id": "d1"})

    assert resp.status_code == 504
    assert resp.json()["type"] == "TIMEOUT_ERROR"


def test_processor_card_error_is_payment_error(gateway):
    gateway.error = stripe.CardError("Your card was declined.", param=None, code="card_declined")
    add_rows(Donation(id="d1", amount=Decimal("5.00")))
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={"donation_id": "d1"})

    assert resp.status_code == 400
    assert resp.json()["type"] == "PAYMENT_ERROR"


def test_details_only_included_in_debug_mode(gateway, monkeypatch):
    client = TestClient(app)

    resp = client.post("/payment-intents/", json={})
    assert "details" not in resp.json()

    monkeypatch.setattr(get_settings(), "debug_errors", True)
    resp = client.post("/payment-intents/", json={})
    assert resp.status_code == 400
    assert "Traceback" in resp.json()["details"]


def test_preflight_is_cached_for_a_day():
    client = TestClient(app)

    resp = client.options(
        "/payment-intents/",
        headers={"Origin": "https://portal.example.com", "Access-Control-Request-Method": "POST"},
    )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.headers["access-control-max-age"] == "86400"
