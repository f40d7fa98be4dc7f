# notedraw_app/payment/creem.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import hashlib
import hmac
import json

import requests
from flask import current_app

from .base import PaymentProvider, PaymentProviderError, WebhookVerificationError
from ..models.payment import Payment
from ..extensions import db
from ..services.payments import record_completed_checkout, update_payment_status

TEST_BASE_URL = "https://test-api.creem.io/v1"
LIVE_BASE_URL = "https://api.creem.io/v1"
COMPLETED_STATUSES = ("completed", "active")


def verify_creem_signature(payload: bytes, signature: str, secret: str) -> bool:
    """HMAC-SHA256 hex do corpo cru; aceita prefixo ``sha256=``."""
    if not signature or not secret:
        return False
    received = signature[7:] if signature.startswith("sha256=") else signature
    expected = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(received.strip().lower(), expected)


class CreemProvider(PaymentProvider):
    name = "creem"

    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None,
                 production: bool | None = None, timeout: int = 15):
        cfg = current_app.config
        self.api_key = api_key if api_key is not None else cfg.get("CREEM_API_KEY", "")
        self.webhook_secret = webhook_secret if webhook_secret is not None else cfg.get("CREEM_WEBHOOK_SECRET", "")
        self.production = production if production is not None else cfg.get("FLASK_ENV") == "production"
        self.timeout = timeout
        self.base_url = TEST_BASE_URL if self.api_key.startswith("creem_test_") else LIVE_BASE_URL

    def _headers(self) -> dict:
        return {"Content-Type": "application/json", "x-api-key": self.api_key}

    def _create(self, product_id: str, customer_email: str, success_url: str, metadata: dict) -> dict:
        payload = {
            "product_id": product_id,
            "customer": {"email": customer_email},
            "success_url": success_url,
            "metadata": metadata,
        }
        r = requests.post(f"{self.base_url}/checkouts", json=payload, headers=self._headers(), timeout=self.timeout)
        if r.status_code >= 400:
            current_app.logger.error("Creem checkout error %s: %s", r.status_code, r.text)
            raise PaymentProviderError(f"Creem API error: {r.status_code}")
        data = r.json()
        return {"id": data.get("id"), "url": data.get("checkout_url")}

    def create_credit_checkout(self, *, package, customer_email, user_id, success_url, cancel_url):
        product_id = package.get("price_id") or package.get("creem_price_id")
        if not product_id:
            raise PaymentProviderError("Creem price ID not found for the given credit package")
        metadata = {
            "userId": str(user_id),
            "priceId": product_id,
            "packageId": package.get("id"),
            "credits": str(int(package.get("credits") or 0)),
            "type": "credit_purchase",
        }
        return self._create(product_id, customer_email, success_url, metadata)

    def create_checkout(self, *, price_id, customer_email, user_id, success_url, cancel_url):
        metadata = {"userId": str(user_id), "priceId": price_id, "type": "subscription"}
        return self._create(price_id, customer_email, success_url, metadata)

    def create_customer_portal(self, *, customer_id, return_url):
        r = requests.post(
            f"{self.base_url}/customers/{customer_id}/billing_portal",
            headers=self._headers(), timeout=self.timeout,
        )
        if r.status_code >= 400:
            raise PaymentProviderError(f"Creem API error: {r.status_code}")
        return r.json().get("url")

    def get_checkout_session(self, session_id):
        r = requests.get(f"{self.base_url}/checkouts/{session_id}", headers=self._headers(), timeout=self.timeout)
        if r.status_code >= 400:
            current_app.logger.warning("Creem getCheckoutSession error: %s", r.status_code)
            return None
        session = r.json()
        if session.get("status") in COMPLETED_STATUSES:
            existing = db.session.get(Payment, session.get("id") or session_id)
            if existing is None or not existing.paid:
                current_app.logger.info("Payment completed but not recorded, recording now: %s", session_id)
                self._handle_checkout_completed(session, fallback_id=session_id)
        return session

    def _handle_checkout_completed(self, session: dict, fallback_id: str | None = None):
        order = session.get("order") or {}
        customer = session.get("customer")
        customer_id = customer.get("id") if isinstance(customer, dict) else (customer or session.get("customer_id"))
        subscription = session.get("subscription")
        subscription_id = subscription.get("id") if isinstance(subscription, dict) else subscription
        return record_completed_checkout(
            session.get("id") or fallback_id,
            session.get("metadata") or {},
            provider=self.name,
            customer_id=customer_id,
            subscription_id=subscription_id,
            amount_cents=order.get("amount"),
            currency=order.get("currency"),
        )

    def verify(self, payload: bytes, signature: str) -> None:
        if self.webhook_secret:
            if not verify_creem_signature(payload, signature, self.webhook_secret):
                raise WebhookVerificationError("Invalid webhook signature")
        elif self.production:
            raise WebhookVerificationError("Webhook secret not configured")
        else:
            current_app.logger.warning("Creem webhook: skipping signature verification (no secret configured)")

    def handle_webhook_event(self, payload, signature):
        self.verify(payload, signature)
        event = json.loads(payload)
        etype = event.get("eventType") or event.get("type")
        data = event.get("object") or event.get("data") or {}

        if etype == "checkout.completed":
            self._handle_checkout_completed(data)
        elif etype == "subscription.updated":
            update_payment_status(data.get("id", ""), data.get("status") or "active")
        elif etype == "subscription.canceled":
            update_payment_status(data.get("id", ""), "canceled", cancel_at_period_end=True)
        else:
            current_app.logger.info("Creem webhook ignored: %s", etype)
