# notedraw_app/blueprints/redemption.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime

from flask import Blueprint, request, jsonify
from sqlalchemy.exc import IntegrityError

from notedraw_app.decorators import api_login_required
from notedraw_app.extensions import db
from notedraw_app.models import RedemptionCode, RedemptionRecord, CreditType
from notedraw_app.blueprints.auth import current_user
from notedraw_app.services.credits import add_credits

bp = Blueprint("redemption", __name__, url_prefix="/redeem")


class RedemptionError(Exception):
    pass


def redeem_code(user_id: int, raw_code: str) -> RedemptionCode:
    code_str = (raw_code or "").strip().upper()
    if not code_str:
        raise RedemptionError("Please enter a code")
    code = RedemptionCode.query.filter_by(code=code_str).first()
    if not code:
        raise RedemptionError("Invalid code")
    if not code.is_active:
        raise RedemptionError("This code is no longer active")
    if code.used_count >= code.max_uses:
        raise RedemptionError("This code has reached its usage limit")
    if code.expires_at and code.expires_at < datetime.utcnow():
        raise RedemptionError("This code has expired")
    if RedemptionRecord.query.filter_by(code_id=code.id, user_id=user_id).first():
        raise RedemptionError("You have already redeemed this code")

    db.session.add(RedemptionRecord(code_id=code.id, user_id=user_id))
    code.used_count = (code.used_count or 0) + 1
    if code.type == "credits" and code.value > 0:
        add_credits(user_id, code.value, CreditType.REDEMPTION,
                    description=f"Redeemed code {code.code}", commit=False)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise RedemptionError("You have already redeemed this code") from e
    return code


@bp.route("", methods=["POST"])
@api_login_required
def redeem():
    data = request.get_json(silent=True) or request.form
    u = current_user()
    try:
        code = redeem_code(u.id, data.get("code", ""))
    except RedemptionError as e:
        return jsonify(success=False, error=str(e)), 400
    return jsonify(success=True, type=code.type, value=code.value)


@bp.route("/history")
@api_login_required
def history():
    u = current_user()
    rows = (RedemptionRecord.query.filter_by(user_id=u.id)
            .order_by(RedemptionRecord.redeemed_at.desc()).limit(50).all())
    return jsonify(success=True, items=[
        {"code": r.code.code, "type": r.code.type, "value": r.code.value,
         "redeemedAt": r.redeemed_at.isoformat() if r.redeemed_at else None}
        for r in rows
    ])
