# tests/test_api_protection.py
from flask import session

from notedraw_app.services.api_protection import (
    hit, remaining, retry_after, reset_limiters, rate_limit_item,
    protect_api, charge, is_test_account, get_client_ip,
)
from notedraw_app.services.credits import get_user_credits


def test_rate_limit_item_reads_api_protection(app):
    with app.app_context():
        item = rate_limit_item("generate_image", "user")
        rule = app.config["API_PROTECTION"]["generate_image"]["per_user"]
        assert item.amount == rule["requests"]
        assert item.get_expiry() == rule["window"]


def test_fixed_window_blocks_after_limit(app, monkeypatch):
    monkeypatch.setitem(app.config, "API_PROTECTION", {
        "generate_image": {"per_user": {"requests": 2, "window": 60}},
    })
    with app.app_context():
        assert hit("generate_image", "user", "user:1")
        assert remaining("generate_image", "user", "user:1") == 1
        assert hit("generate_image", "user", "user:1")
        assert not hit("generate_image", "user", "user:1")
        assert remaining("generate_image", "user", "user:1") == 0
        assert 1 <= retry_after("generate_image", "user", "user:1") <= 60

        # chaves independentes
        assert hit("generate_image", "user", "user:2")

        reset_limiters()
        assert hit("generate_image", "user", "user:1")


def _ctx(app, ip="10.1.1.1"):
    return app.test_request_context("/notedraw/x", environ_base={"REMOTE_ADDR": ip})


def test_unauthenticated_is_401(app):
    with _ctx(app):
        result = protect_api("generate_image")
        assert not result.ok
        assert result.response[1] == 401


def test_insufficient_credits_is_402(app, user_normal):
    with _ctx(app):
        session["user"] = {"id": user_normal.id, "email": user_normal.email}
        result = protect_api("generate_image", required_credits=6)
        assert result.response[1] == 402
        assert result.response[0].get_json()["error"] == "Insufficient credits"


def test_rate_limit_per_user_is_429_with_retry_after(app, user_normal, fund):
    fund(user_normal.id, 100)
    limit = app.config["API_PROTECTION"]["generate_image"]["per_user"]["requests"]
    with _ctx(app, ip="10.2.2.2"):
        session["user"] = {"id": user_normal.id, "email": user_normal.email}
        for _ in range(limit):
            assert protect_api("generate_image", required_credits=1).ok
        blocked = protect_api("generate_image", required_credits=1)
        resp, status = blocked.response
        assert status == 429
        assert int(resp.headers["Retry-After"]) >= 1


def test_test_accounts_bypass_limits_and_charges(app, user_normal, monkeypatch):
    monkeypatch.setitem(app.config, "TEST_USER_EMAILS", [user_normal.email.lower()])
    with _ctx(app):
        assert is_test_account(user_normal.email.upper())
        session["user"] = {"id": user_normal.id, "email": user_normal.email}
        result = protect_api("generate_image", required_credits=1000)
        assert result.ok and result.is_test_account
        charge(result, 50, "free")
        assert get_user_credits(user_normal.id) == 0


def test_charge_debits_credits(app, user_normal, fund):
    fund(user_normal.id, 10)
    with _ctx(app):
        session["user"] = {"id": user_normal.id, "email": user_normal.email}
        result = protect_api("generate_image", required_credits=5)
        assert result.ok
        charge(result, 5, "image")
        assert get_user_credits(user_normal.id) == 5


def test_client_ip_prefers_forwarded_header(app):
    with app.test_request_context("/", headers={"X-Forwarded-For": "1.2.3.4, 5.6.7.8"}):
        assert get_client_ip() == "1.2.3.4"
    with app.test_request_context("/", headers={"X-Real-IP": "9.9.9.9"}):
        assert get_client_ip() == "9.9.9.9"


def test_rate_limit_is_checked_before_credits(app, user_normal):
    limit = app.config["API_PROTECTION"]["generate_image"]["per_user"]["requests"]
    with _ctx(app, ip="10.3.3.3"):
        session["user"] = {"id": user_normal.id, "email": user_normal.email}
        for _ in range(limit):
            assert protect_api("generate_image", required_credits=1).response[1] == 402
        resp, status = protect_api("generate_image", required_credits=1).response
        assert status == 429
        assert resp.headers["X-RateLimit-Remaining"] == "0"
