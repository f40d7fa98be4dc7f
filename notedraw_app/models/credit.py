# notedraw_app/models/credit.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime
from ..extensions import db


class CreditType:
    REGISTER_GIFT = "register_gift"
    PURCHASE_PACKAGE = "purchase_package"
    SUBSCRIPTION_RENEWAL = "subscription_renewal"
    REDEMPTION = "redemption"
    USAGE = "usage"
    ADMIN_ADD = "admin_add"
    ADMIN_DEDUCT = "admin_deduct"
    EXPIRE = "expire"

    ALL = (
        REGISTER_GIFT, PURCHASE_PACKAGE, SUBSCRIPTION_RENEWAL, REDEMPTION,
        USAGE, ADMIN_ADD, ADMIN_DEDUCT, EXPIRE,
    )


class UserCredit(db.Model):
    __tablename__ = "user_credits"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False, index=True)
    current_credits = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CreditTransaction(db.Model):
    __tablename__ = "credit_transactions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    type = db.Column(db.String(40), nullable=False, index=True)
    description = db.Column(db.String(255), default="")
    amount = db.Column(db.Integer, nullable=False)              # positivo = crédito, negativo = débito
    remaining_amount = db.Column(db.Integer)                    # saldo ainda não consumido (só concessões)
    payment_id = db.Column(db.String(120), index=True)
    expiration_date = db.Column(db.DateTime)
    expiration_processed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship("User", backref=db.backref("credit_transactions", lazy="dynamic"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type,
            "description": self.description,
            "amount": self.amount,
            "remainingAmount": self.remaining_amount,
            "paymentId": self.payment_id,
            "expirationDate": self.expiration_date.isoformat() if self.expiration_date else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
