from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from backend.app.core.security import create_access_token
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.quotation import Quotation
from backend.app.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def token_for(email: str, role: str = "client") -> dict:
    db = SessionLocal()
    try:
        user = User(email=email, role=role)
        db.add(user)
        db.commit()
        return {"Authorization": f"Bearer {create_access_token(user_id=user.id)}"}
    finally:
        db.close()


QUOTE_ITEMS = [
    {"description": "NCLEX NY BON Application Fee", "amount": 143},
    {"description": "NCLEX GritSync Service Fee", "amount": 150, "taxable": True},
]


def test_guest_quote_is_priced_from_line_items():
    client = TestClient(app)

    resp = client.post(
        "/quotations/",
        json={
            "service": "NCLEX Processing",
            "state": "New York",
            "line_items": QUOTE_ITEMS,
            "client_email": "guest@example.com",
        },
    )

    assert resp.status_code == 201
    data = resp.json()
    assert data["user_id"] is None
    assert data["status"] == "pending"
    assert Decimal(data["amount"]) == Decimal("311.00")


def test_quote_without_amount_or_items_is_rejected():
    client = TestClient(app)

    resp = client.post("/quotations/", json={"service": "NCLEX Processing"})

    assert resp.status_code == 400


def test_clients_only_list_their_own_quotes():
    client = TestClient(app)
    alice = token_for("alice@example.com")
    bob = token_for("bob@example.com")
    admin = token_for("admin@example.com", role="admin")
    client.post("/quotations/", json={"amount": "100.00"}, headers=alice)
    client.post("/quotations/", json={"amount": "200.00"}, headers=bob)
    client.post("/quotations/", json={"amount": "300.00"})

    alice_quotes = client.get("/quotations/", headers=alice).json()
    admin_quotes = client.get("/quotations/", headers=admin).json()

    assert [Decimal(q["amount"]) for q in alice_quotes] == [Decimal("100.00")]
    assert len(admin_quotes) == 3


def test_other_clients_quote_is_not_found():
    client = TestClient(app)
    alice = token_for("alice@example.com")
    bob = token_for("bob@example.com")
    quote_id = client.post("/quotations/", json={"amount": "100.00"}, headers=alice).json()["id"]

    resp = client.get(f"/quotations/{quote_id}", headers=bob)

    assert resp.status_code == 404


def test_admin_updates_status_and_reprices():
    client = TestClient(app)
    admin = token_for("admin@example.com", role="admin")
    quote_id = client.post("/quotations/", json={"amount": "100.00"}).json()["id"]

    resp = client.put(
        f"/quotations/{quote_id}",
        json={"status": "approved", "line_items": [{"description": "Fee", "amount": 50}]},
        headers=admin,
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    assert Decimal(resp.json()["amount"]) == Decimal("50.00")


def test_admin_delete_removes_row():
    client = TestClient(app)
    admin = token_for("admin@example.com", role="admin")
    quote_id = client.post("/quotations/", json={"amount": "100.00"}).json()["id"]

    resp = client.delete(f"/quotations/{quote_id}", headers=admin)

    assert resp.status_code == 200
    assert resp.json()["id"] == quote_id
    db = SessionLocal()
    try:
        assert db.query(Quotation).filter(Quotation.id == quote_id).first() is None
    finally:
        db.close()


def test_clients_cannot_delete_quotes():
    client = TestClient(app)
    alice = token_for("alice@example.com")
    quote_id = client.post("/quotations/", json={"amount": "100.00"}, headers=alice).json()["id"]

    resp = client.delete(f"/quotations/{quote_id}", headers=alice)

    assert resp.status_code == 403
