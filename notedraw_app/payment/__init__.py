# notedraw_app/payment/__init__.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask import current_app

from .base import PaymentProvider, PaymentProviderError, WebhookVerificationError
from .creem import CreemProvider
from .stripe_provider import StripeProvider

PROVIDERS = {
    "creem": CreemProvider,
    "stripe": StripeProvider,
}


def get_payment_provider(name: str | None = None) -> PaymentProvider:
    name = (name or current_app.config.get("PAYMENT_PROVIDER") or "creem").lower()
    cls = PROVIDERS.get(name)
    if cls is None:
        raise PaymentProviderError(f"Unknown payment provider: {name}")
    return cls()


__all__ = [
    "PaymentProvider",
    "PaymentProviderError",
    "WebhookVerificationError",
    "CreemProvider",
    "StripeProvider",
    "get_payment_provider",
]
