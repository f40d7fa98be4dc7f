# notedraw_app/payment/stripe_provider.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import stripe
from flask import current_app

from .base import PaymentProvider, WebhookVerificationError
from ..services.payments import record_completed_checkout, update_payment_status


def _stripe():
    stripe.api_key = current_app.config["STRIPE_SECRET_KEY"]
    return stripe


def _get(obj, key, default=None):
    try:
        return obj.get(key, default)
    except AttributeError:
        return getattr(obj, key, default)


class StripeProvider(PaymentProvider):
    name = "stripe"

    def create_credit_checkout(self, *, package, customer_email, user_id, success_url, cancel_url):
        s = _stripe()
        metadata = {
            "userId": str(user_id),
            "priceId": package.get("price_id") or package.get("id"),
            "packageId": package.get("id"),
            "credits": str(int(package.get("credits") or 0)),
            "type": "credit_purchase",
        }
        params = {
            "mode": "payment",
            "customer_email": customer_email,
            "success_url": success_url + "?session_id={CHECKOUT_SESSION_ID}",
            "cancel_url": cancel_url,
            "metadata": metadata,
        }
        if package.get("price_id"):
            params["line_items"] = [{"price": package["price_id"], "quantity": 1}]
        else:
            params["line_items"] = [{
                "price_data": {
                    "currency": (package.get("currency") or "cny").lower(),
                    "unit_amount": int(round(float(package.get("price") or 0) * 100)),
                    "product_data": {"name": f"{package.get('name') or package.get('id')} credits"},
                },
                "quantity": 1,
            }]
        sess = s.checkout.Session.create(**params)
        return {"id": _get(sess, "id"), "url": _get(sess, "url")}

    def create_checkout(self, *, price_id, customer_email, user_id, success_url, cancel_url):
        s = _stripe()
        sess = s.checkout.Session.create(
            mode="subscription",
            customer_email=customer_email,
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url + "?session_id={CHECKOUT_SESSION_ID}",
            cancel_url=cancel_url,
            allow_promotion_codes=True,
            metadata={"userId": str(user_id), "priceId": price_id, "type": "subscription"},
        )
        return {"id": _get(sess, "id"), "url": _get(sess, "url")}

    def create_customer_portal(self, *, customer_id, return_url):
        s = _stripe()
        portal = s.billing_portal.Session.create(customer=customer_id, return_url=return_url)
        return _get(portal, "url")

    def _record(self, data):
        return record_completed_checkout(
            _get(data, "id"),
            dict(_get(data, "metadata") or {}),
            provider=self.name,
            customer_id=_get(data, "customer"),
            subscription_id=_get(data, "subscription"),
            amount_cents=_get(data, "amount_total"),
            currency=_get(data, "currency"),
        )

    def get_checkout_session(self, session_id):
        s = _stripe()
        sess = s.checkout.Session.retrieve(session_id)
        if _get(sess, "payment_status") == "paid" or _get(sess, "status") == "complete":
            self._record(sess)
        return sess

    def handle_webhook_event(self, payload, signature):
        s = _stripe()
        secret = current_app.config["STRIPE_WEBHOOK_SECRET"]
        try:
            event = s.Webhook.construct_event(payload, signature, secret)
        except Exception as e:
            raise WebhookVerificationError(str(e)) from e

        typ = event["type"]
        data = event["data"]["object"]
        if typ == "checkout.session.completed":
            if _get(data, "payment_status") in ("paid", "no_payment_required"):
                self._record(data)
        elif typ == "customer.subscription.updated":
            update_payment_status(_get(data, "id"), _get(data, "status") or "active",
                                  cancel_at_period_end=bool(_get(data, "cancel_at_period_end")))
        elif typ == "customer.subscription.deleted":
            update_payment_status(_get(data, "id"), "canceled")
        elif typ == "invoice.payment_failed":
            update_payment_status(_get(data, "subscription") or "", "past_due")
