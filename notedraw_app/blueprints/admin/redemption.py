# notedraw_app/blueprints/admin/redemption.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import secrets
import string
from datetime import datetime, timedelta

from flask import request, jsonify, session

from ..admin import admin_bp
from ...decorators import api_admin_required
from ...extensions import db
from ...models import RedemptionCode, RedemptionRecord
from ...models.redemption import CODE_TYPES

CODE_PREFIX = "NOTEDRAW"
# sem 0/O/1/I para evitar confusão na digitação
CODE_ALPHABET = "".join(c for c in string.ascii_uppercase + string.digits if c not in "0O1I")
MAX_BATCH = 100


def _chunk(n: int = 4) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(n))


def generate_code() -> str:
    return f"{CODE_PREFIX}-{_chunk()}-{_chunk()}"


def _unique_code(taken: set[str]) -> str:
    while True:
        code = generate_code()
        if code in taken:
            continue
        if not RedemptionCode.query.filter_by(code=code).first():
            taken.add(code)
            return code


def _to_bool(v) -> bool:
    return str(v).lower() in ("1", "true", "on", "yes")


@admin_bp.route("/redemption-codes", methods=["POST"])
@api_admin_required
def create_codes():
    data = request.get_json(silent=True) or request.form
    try:
        count = int(data.get("count", 1))
        value = int(data.get("value", 0))
        max_uses = int(data.get("max_uses", data.get("maxUses", 1)))
        expires_days = int(data.get("expires_days", data.get("expiresDays", 0)) or 0)
    except (TypeError, ValueError):
        return jsonify(success=False, error="Invalid numeric field"), 400
    ctype = data.get("type", "credits")

    if not 1 <= count <= MAX_BATCH:
        return jsonify(success=False, error=f"Count must be between 1 and {MAX_BATCH}"), 400
    if ctype not in CODE_TYPES:
        return jsonify(success=False, error="Invalid code type"), 400
    if value <= 0:
        return jsonify(success=False, error="Value must be positive"), 400
    if max_uses < 1:
        return jsonify(success=False, error="Max uses must be at least 1"), 400

    expires_at = datetime.utcnow() + timedelta(days=expires_days) if expires_days > 0 else None
    admin_id = (session.get("user") or {}).get("id")
    taken: set[str] = set()
    codes = []
    for _ in range(count):
        c = RedemptionCode(code=_unique_code(taken), type=ctype, value=value, max_uses=max_uses,
                           expires_at=expires_at, note=(data.get("note") or None), created_by=admin_id)
        db.session.add(c)
        codes.append(c)
    db.session.commit()
    return jsonify(success=True, codes=[c.to_dict() for c in codes]), 201


@admin_bp.route("/redemption-codes")
@api_admin_required
def list_codes():
    page = max(request.args.get("page", 1, type=int), 1)
    limit = min(max(request.args.get("limit", 20, type=int), 1), 100)
    q = RedemptionCode.query
    status = request.args.get("status")
    if status == "active":
        q = q.filter(RedemptionCode.is_active.is_(True))
    elif status == "inactive":
        q = q.filter(RedemptionCode.is_active.is_(False))
    search = (request.args.get("search") or "").strip().upper()
    if search:
        q = q.filter(RedemptionCode.code.like(f"%{search}%"))
    total = q.count()
    rows = q.order_by(RedemptionCode.created_at.desc(), RedemptionCode.id.desc()) \
        .offset((page - 1) * limit).limit(limit).all()
    return jsonify(success=True, items=[c.to_dict() for c in rows], total=total, page=page, limit=limit)


@admin_bp.route("/redemption-codes/<int:code_id>", methods=["POST"])
@api_admin_required
def update_code(code_id: int):
    c = db.session.get(RedemptionCode, code_id)
    if not c:
        return jsonify(success=False, error="Code not found"), 404
    data = request.get_json(silent=True) or request.form
    if "is_active" in data:
        c.is_active = _to_bool(data["is_active"])
    if "max_uses" in data:
        try:
            max_uses = int(data["max_uses"])
        except (TypeError, ValueError):
            return jsonify(success=False, error="Invalid max uses"), 400
        if max_uses < max(c.used_count or 0, 1):
            return jsonify(success=False, error="Max uses cannot be lower than used count"), 400
        c.max_uses = max_uses
    if "expires_at" in data:
        raw = data.get("expires_at")
        if raw:
            try:
                c.expires_at = datetime.fromisoformat(str(raw))
            except ValueError:
                return jsonify(success=False, error="Invalid expiry date"), 400
        else:
            c.expires_at = None
    if "note" in data:
        c.note = data.get("note") or None
    db.session.commit()
    return jsonify(success=True, code=c.to_dict())


def _record_dict(r: RedemptionRecord) -> dict:
    return {
        "id": r.id,
        "code": r.code.code if r.code else None,
        "userId": r.user_id,
        "userEmail": r.user.email if r.user else None,
        "redeemedAt": r.redeemed_at.isoformat() if r.redeemed_at else None,
    }


@admin_bp.route("/redemption-codes/<int:code_id>/records")
@api_admin_required
def code_records(code_id: int):
    c = db.session.get(RedemptionCode, code_id)
    if not c:
        return jsonify(success=False, error="Code not found"), 404
    rows = c.records.order_by(RedemptionRecord.redeemed_at.desc()).all()
    return jsonify(success=True, code=c.to_dict(), records=[_record_dict(r) for r in rows])


@admin_bp.route("/redemption-records")
@api_admin_required
def all_records():
    page = max(request.args.get("page", 1, type=int), 1)
    limit = min(max(request.args.get("limit", 20, type=int), 1), 100)
    q = RedemptionRecord.query.order_by(RedemptionRecord.redeemed_at.desc(), RedemptionRecord.id.desc())
    total = q.count()
    rows = q.offset((page - 1) * limit).limit(limit).all()
    return jsonify(success=True, items=[_record_dict(r) for r in rows], total=total, page=page, limit=limit)
