# tests/test_billing.py
import json

import notedraw_app.blueprints.billing as billing_mod


def test_checkout_page_lists_packages(logged_client_user, monkeypatch):
    captured = {}
    monkeypatch.setattr(billing_mod, "render_template", lambda name, **ctx: captured.update(ctx) or name)
    r = logged_client_user.get("/billing/checkout")
    assert r.data == b"checkout.html"
    assert [p["id"] for p in captured["packages"]][:2] == ["starter", "standard"]


def test_checkout_requires_login(client):
    r = client.get("/billing/checkout")
    assert r.status_code == 302
    assert "/login" in r.headers["Location"]


def test_unknown_package_redirects_back(logged_client_user):
    r = logged_client_user.post("/billing/checkout", data={"package_id": "nope"})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/billing/checkout")


def test_creem_without_price_id_redirects_back(logged_client_user, app, monkeypatch):
    monkeypatch.setitem(app.config, "PAYMENT_PROVIDER", "creem")
    r = logged_client_user.post("/billing/checkout", data={"package_id": "starter"})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/billing/checkout")


def test_creem_checkout_redirects_to_provider(logged_client_user, app, monkeypatch, set_config, fake_response):
    import requests
    set_config("pricing", "packages", json.dumps([{"id": "p1", "credits": 10, "price": 1, "price_id": "prod_1"}]))
    monkeypatch.setitem(app.config, "PAYMENT_PROVIDER", "creem")
    sent = {}

    def _post(url, json=None, headers=None, timeout=None):
        sent["url"] = url
        sent["json"] = json
        return fake_response(200, {"id": "ch_1", "checkout_url": "https://creem.test/pay/ch_1"})
    monkeypatch.setattr(requests, "post", _post)

    r = logged_client_user.post("/billing/checkout", data={"package_id": "p1"})
    assert r.status_code == 303
    assert r.headers["Location"] == "https://creem.test/pay/ch_1"
    assert sent["url"].endswith("/checkouts")
    assert sent["json"]["metadata"]["credits"] == "10"
    assert sent["json"]["metadata"]["type"] == "credit_purchase"


def test_stripe_checkout_redirects_303(logged_client_user, app, monkeypatch):
    monkeypatch.setitem(app.config, "PAYMENT_PROVIDER", "stripe")
    r = logged_client_user.post("/billing/checkout", data={"package_id": "starter"})
    assert r.status_code == 303
    assert r.headers["Location"] == "https://stripe.example/checkout/session/test_123"


def test_payments_disabled(logged_client_user, set_config):
    set_config("features", "payment_enabled", "false")
    r = logged_client_user.post("/billing/checkout", data={"package_id": "starter"})
    assert r.status_code == 302


def test_subscribe_requires_price(logged_client_user):
    r = logged_client_user.post("/billing/subscribe", data={})
    assert r.headers["Location"].endswith("/billing/checkout")


def test_portal_without_customer(logged_client_user):
    r = logged_client_user.get("/billing/portal")
    assert r.headers["Location"].endswith("/billing/checkout")


def test_success_page_passes_session_id(logged_client_user, monkeypatch):
    captured = {}
    monkeypatch.setattr(billing_mod, "render_template", lambda name, **ctx: captured.update(ctx) or name)
    r = logged_client_user.get("/billing/success?checkout_id=ch_42")
    assert r.data == b"billing_success.html"
    assert captured["session_id"] == "ch_42"
