from __future__ import annotations

import os

from fastapi.testclient import TestClient

from lunchpick.analytics.feedback import clear_feedback
from lunchpick.app import app

client = TestClient(app)

ADMIN_CODE = os.getenv("ADMIN_CODE", "lunchpick-admin")


def _login_user(c):
    c.post("/auth/login", json={"name": "Jiwoo"})


def _login_admin(c):
    c.post("/auth/login", json={"name": "Admin Kim"})
    c.post("/auth/admin", json={"admin_code": ADMIN_CODE})


def _post(c, **overrides):
    body = {"type": "bug_report", "title": "Slot machine stuck", "content": "It never stops", **overrides}
    return c.post("/feedback", json=body)


def test_feedback_recorded_as_pending():
    clear_feedback()
    _login_user(client)
    resp = _post(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "pending"
    assert body["priority"] == "medium"
    assert body["user_name"] == "Jiwoo"
    assert body["admin_reply"] is None


def test_feedback_validation():
    _login_user(client)
    assert _post(client, title="").status_code == 422
    assert _post(client, title="x" * 101).status_code == 422
    assert _post(client, content="x" * 1001).status_code == 422
    assert _post(client, type="rant").status_code == 422


def test_feedback_list_filters():
    clear_feedback()
    _login_user(client)
    _post(client)
    _post(client, type="feature_request", title="Dark mode")
    body = client.get("/feedback", params={"type": "feature_request"}).json()
    assert body["count"] == 1
    assert body["feedback"][0]["title"] == "Dark mode"
    assert client.get("/feedback").json()["count"] == 2


def test_admin_reply_and_status():
    clear_feedback()
    c = TestClient(app)
    _login_user(c)
    fid = _post(c).json()["id"]
    _login_admin(c)
    resp = c.put(f"/feedback/{fid}", json={"status": "completed", "admin_reply": "Fixed, thanks!"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "completed"
    assert body["admin_reply"]["content"] == "Fixed, thanks!"
    assert body["admin_reply"]["replied_by"] == "Admin Kim"

    completed = c.get("/feedback", params={"status": "completed"}).json()
    assert [f["id"] for f in completed["feedback"]] == [fid]


def test_admin_update_missing_feedback_404():
    c = TestClient(app)
    _login_admin(c)
    assert c.put("/feedback/nope", json={"status": "rejected"}).status_code == 404
