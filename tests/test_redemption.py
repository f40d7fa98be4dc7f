# tests/test_redemption.py
import uuid
from datetime import datetime, timedelta

import pytest

from notedraw_app.extensions import db
from notedraw_app.models import RedemptionCode
from notedraw_app.services.credits import get_user_credits


@pytest.fixture
def make_code(app):
    def _make(**kw):
        params = {"code": f"NOTEDRAW-{uuid.uuid4().hex[:4].upper()}-{uuid.uuid4().hex[:4].upper()}",
                  "type": "credits", "value": 30, "max_uses": 1}
        params.update(kw)
        with app.app_context():
            c = RedemptionCode(**params)
            db.session.add(c)
            db.session.commit()
            return c.code
    return _make


def test_redeem_grants_credits_once(app, logged_client_user, user_normal, make_code):
    code = make_code(max_uses=5)
    r = logged_client_user.post("/redeem", json={"code": code.lower()})
    assert r.status_code == 200
    assert r.get_json() == {"success": True, "type": "credits", "value": 30}

    r = logged_client_user.post("/redeem", json={"code": code})
    assert r.status_code == 400
    assert "already redeemed" in r.get_json()["error"]

    with app.app_context():
        assert get_user_credits(user_normal.id) == 30
        assert RedemptionCode.query.filter_by(code=code).one().used_count == 1


@pytest.mark.parametrize("kw,needle", [
    ({"is_active": False}, "no longer active"),
    ({"max_uses": 1, "used_count": 1}, "usage limit"),
    ({"expires_at": datetime.utcnow() - timedelta(days=1)}, "expired"),
])
def test_redeem_rejections(logged_client_user, make_code, kw, needle):
    code = make_code(**kw)
    r = logged_client_user.post("/redeem", json={"code": code})
    assert r.status_code == 400
    assert needle in r.get_json()["error"]


def test_redeem_unknown_and_empty(logged_client_user):
    assert logged_client_user.post("/redeem", json={"code": "NOPE"}).get_json()["error"] == "Invalid code"
    assert logged_client_user.post("/redeem", json={"code": "  "}).get_json()["error"] == "Please enter a code"


def test_redeem_requires_login(app):
    assert app.test_client().post("/redeem", json={"code": "X"}).status_code == 401


def test_history_lists_redemptions(logged_client_user, make_code):
    code = make_code()
    logged_client_user.post("/redeem", json={"code": code})
    items = logged_client_user.get("/redeem/history").get_json()["items"]
    assert items[0]["code"] == code and items[0]["value"] == 30
