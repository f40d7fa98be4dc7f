# notedraw_app/models/payment.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime
from ..extensions import db

PAYMENT_TYPES = ("credit_purchase", "subscription")
PAYMENT_PROVIDERS = ("creem", "stripe")


class Payment(db.Model):
    """Pagamento reconciliado a partir do provedor (webhook ou polling).

    O ``id`` é o id da sessão de checkout no provedor; ``paid`` reflete o
    estado autoritativo do provedor após cada reconciliação.
    """
    __tablename__ = "payments"

    id = db.Column(db.String(120), primary_key=True)
    price_id = db.Column(db.String(120), nullable=False, default="")
    type = db.Column(db.String(30), nullable=False, default="credit_purchase")
    scene = db.Column(db.String(30))                                # ex.: "credits", "upgrade"
    interval = db.Column(db.String(20))                             # month / year
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), index=True, nullable=False)
    customer_id = db.Column(db.String(120), nullable=False, default="")
    subscription_id = db.Column(db.String(120))
    session_id = db.Column(db.String(120), index=True)
    invoice_id = db.Column(db.String(120), unique=True)
    status = db.Column(db.String(30), nullable=False, default="pending")  # pending, succeeded, canceled, failed
    paid = db.Column(db.Boolean, nullable=False, default=False)
    amount_cents = db.Column(db.Integer, default=0)
    currency = db.Column(db.String(10), default="CNY")
    period_start = db.Column(db.DateTime)
    period_end = db.Column(db.DateTime)
    cancel_at_period_end = db.Column(db.Boolean, default=False)
    provider = db.Column(db.String(30), nullable=False, default="creem")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "priceId": self.price_id,
            "type": self.type,
            "scene": self.scene,
            "interval": self.interval,
            "userId": self.user_id,
            "userEmail": self.user.email if self.user else None,
            "customerId": self.customer_id,
            "subscriptionId": self.subscription_id,
            "sessionId": self.session_id,
            "invoiceId": self.invoice_id,
            "status": self.status,
            "paid": bool(self.paid),
            "amountCents": self.amount_cents or 0,
            "currency": self.currency,
            "provider": self.provider,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
