# notedraw_app/models/redemption.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime
from ..extensions import db

CODE_TYPES = ("credits", "membership", "trial")


class RedemptionCode(db.Model):
    __tablename__ = "redemption_codes"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(40), unique=True, nullable=False, index=True)   # NOTEDRAW-XXXX-XXXX
    type = db.Column(db.String(20), nullable=False, default="credits")
    value = db.Column(db.Integer, nullable=False, default=0)                   # créditos ou dias
    max_uses = db.Column(db.Integer, nullable=False, default=1)
    used_count = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, default=True)
    expires_at = db.Column(db.DateTime)
    note = db.Column(db.String(255))
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    records = db.relationship("RedemptionRecord", backref="code", lazy="dynamic")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "type": self.type,
            "value": self.value,
            "maxUses": self.max_uses,
            "usedCount": self.used_count,
            "isActive": bool(self.is_active),
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "note": self.note,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class RedemptionRecord(db.Model):
    __tablename__ = "redemption_records"

    id = db.Column(db.Integer, primary_key=True)
    code_id = db.Column(db.Integer, db.ForeignKey("redemption_codes.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    redeemed_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint("code_id", "user_id", name="uq_redemption_code_user"),
    )
