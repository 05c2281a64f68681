from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from backend.app.core.security import create_access_token
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.notification import Notification
from backend.app.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def seed_user(user_id: str) -> dict:
    db = SessionLocal()
    try:
        db.add(User(id=user_id, email=f"{user_id}@example.com"))
        db.commit()
    finally:
        db.close()
    return {"Authorization": f"Bearer {create_access_token(user_id=user_id)}"}


def seed_notification(notification_id: str, user_id: str, minutes_ago: int = 0, read: bool = False):
    db = SessionLocal()
    try:
        db.add(
            Notification(
                id=notification_id,
                user_id=user_id,
                type="payment",
                title="Payment Successful",
                message="Your Step 1 Payment of $267.99 has been processed successfully.",
                read=read,
                created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
            )
        )
        db.commit()
    finally:
        db.close()


def test_list_is_newest_first_and_scoped_to_owner():
    headers = seed_user("u1")
    seed_user("u2")
    seed_notification("n_old", "u1", minutes_ago=10)
    seed_notification("n_new", "u1", minutes_ago=1)
    seed_notification("n_other", "u2")
    client = TestClient(app)

    resp = client.get("/notifications/", headers=headers)

    assert resp.status_code == 200
    assert [n["id"] for n in resp.json()] == ["n_new", "n_old"]


def test_unread_only_filter():
    headers = seed_user("u1")
    seed_notification("n_read", "u1", read=True)
    seed_notification("n_unread", "u1")
    client = TestClient(app)

    resp = client.get("/notifications/", params={"unread_only": True}, headers=headers)

    assert [n["id"] for n in resp.json()] == ["n_unread"]


def test_mark_read():
    headers = seed_user("u1")
    seed_notification("n1", "u1")
    client = TestClient(app)

    resp = client.post("/notifications/n1/read", headers=headers)

    assert resp.status_code == 200
    assert resp.json()["read"] is True


def test_cannot_mark_another_users_notification():
    headers = seed_user("u1")
    seed_user("u2")
    seed_notification("n_other", "u2")
    client = TestClient(app)

    resp = client.post("/notifications/n_other/read", headers=headers)

    assert resp.status_code == 404


def test_requires_authentication():
    client = TestClient(app)

    assert client.get("/notifications/").status_code in (401, 403)
