# notedraw_app/blueprints/admin/credits.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import io
from datetime import datetime, timedelta, time as dtime

from flask import request, jsonify, session, current_app, send_file
from sqlalchemy import func, or_

from ..admin import admin_bp
from ...decorators import api_admin_required
from ...extensions import db
from ...models import User, UserCredit, CreditTransaction, CreditType
from ...services.credits import adjust_credits, get_user_credits, InsufficientCreditsError
from ...services.export import transactions_csv

USER_SORTS = {
    "credits": func.coalesce(UserCredit.current_credits, 0),
    "createdAt": User.created_at,
    "name": User.name,
}


def _page_args(default_limit: int = 20) -> tuple[int, int]:
    page = max(request.args.get("page", 1, type=int), 1)
    limit = min(max(request.args.get("limit", default_limit, type=int), 1), 100)
    return page, limit


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d")
    except ValueError:
        return None


def _sum_amount(*criteria) -> int:
    return int(db.session.query(func.coalesce(func.sum(CreditTransaction.amount), 0))
               .filter(*criteria).scalar() or 0)


@admin_bp.route("/credits/stats")
@api_admin_required
def credit_stats():
    today = datetime.combine(datetime.utcnow().date(), dtime.min)
    by_type = db.session.query(
        CreditTransaction.type,
        func.count(CreditTransaction.id),
        func.coalesce(func.sum(CreditTransaction.amount), 0),
    ).group_by(CreditTransaction.type).all()

    trend = []
    for i in range(6, -1, -1):
        start = today - timedelta(days=i)
        end = start + timedelta(days=1)
        trend.append({
            "date": start.strftime("%Y-%m-%d"),
            "added": _sum_amount(CreditTransaction.amount > 0, CreditTransaction.created_at >= start,
                                 CreditTransaction.created_at < end),
            "used": -_sum_amount(CreditTransaction.amount < 0, CreditTransaction.created_at >= start,
                                 CreditTransaction.created_at < end),
        })

    return jsonify(success=True, data={
        "usersWithCredits": UserCredit.query.filter(UserCredit.current_credits > 0).count(),
        "totalCredits": int(db.session.query(func.coalesce(func.sum(UserCredit.current_credits), 0)).scalar() or 0),
        "todayAdded": _sum_amount(CreditTransaction.amount > 0, CreditTransaction.created_at >= today),
        "todayUsed": -_sum_amount(CreditTransaction.amount < 0, CreditTransaction.created_at >= today),
        "transactionCount": CreditTransaction.query.count(),
        "typeDistribution": [{"type": t, "count": int(n), "amount": int(a)} for t, n, a in by_type],
        "trend": trend,
    })


@admin_bp.route("/credits/users")
@api_admin_required
def credit_users():
    page, limit = _page_args()
    search = (request.args.get("search") or "").strip().lower()
    col = USER_SORTS.get(request.args.get("sort", "createdAt"), User.created_at)
    order = col.asc() if request.args.get("order") == "asc" else col.desc()

    q = db.session.query(User, UserCredit.current_credits).outerjoin(UserCredit, UserCredit.user_id == User.id)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(func.lower(User.email).like(like), func.lower(User.name).like(like)))
    total = q.count()
    rows = q.order_by(order, User.id.asc()).offset((page - 1) * limit).limit(limit).all()
    items = [
        {"id": u.id, "name": u.name, "email": u.email, "isAdmin": bool(u.is_admin),
         "banned": bool(u.banned), "credits": int(c or 0),
         "createdAt": u.created_at.isoformat() if u.created_at else None}
        for u, c in rows
    ]
    return jsonify(success=True, items=items, total=total, page=page, limit=limit)


@admin_bp.route("/credits/users/<int:user_id>")
@api_admin_required
def credit_user_detail(user_id: int):
    u = db.session.get(User, user_id)
    if not u:
        return jsonify(success=False, error="User not found"), 404
    page, limit = _page_args()
    q = CreditTransaction.query.filter_by(user_id=user_id) \
        .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
    total = q.count()
    txs = q.offset((page - 1) * limit).limit(limit).all()
    return jsonify(success=True, user={
        "id": u.id, "name": u.name, "email": u.email,
        "credits": get_user_credits(u.id),
    }, transactions=[t.to_dict() for t in txs], total=total, page=page, limit=limit)


@admin_bp.route("/credits/users/<int:user_id>/adjust", methods=["POST"])
@api_admin_required
def credit_adjust(user_id: int):
    u = db.session.get(User, user_id)
    if not u:
        return jsonify(success=False, error="User not found"), 404
    data = request.get_json(silent=True) or request.form
    try:
        amount = int(data.get("amount", 0))
    except (TypeError, ValueError):
        return jsonify(success=False, error="Invalid amount"), 400
    reason = (data.get("reason") or "").strip()
    if amount == 0:
        return jsonify(success=False, error="Amount must not be zero"), 400
    if not reason:
        return jsonify(success=False, error="A reason is required"), 400

    admin_email = session.get("user", {}).get("email")
    try:
        balance = adjust_credits(u.id, amount, f"{reason} (by {admin_email})")
    except InsufficientCreditsError as e:
        return jsonify(success=False, error=str(e)), 400
    current_app.logger.info("Admin %s adjusted credits of user %s by %s", admin_email, u.id, amount)
    return jsonify(success=True, credits=balance)


def _transactions_query():
    q = CreditTransaction.query
    t = request.args.get("type")
    if t in CreditType.ALL:
        q = q.filter(CreditTransaction.type == t)
    uid = request.args.get("user_id", type=int)
    if uid:
        q = q.filter(CreditTransaction.user_id == uid)
    start = _parse_date(request.args.get("start_date"))
    if start:
        q = q.filter(CreditTransaction.created_at >= start)
    end = _parse_date(request.args.get("end_date"))
    if end:
        # data final inclusiva
        q = q.filter(CreditTransaction.created_at < end + timedelta(days=1))
    return q.order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())


@admin_bp.route("/credits/transactions")
@api_admin_required
def credit_transactions():
    page, limit = _page_args(50)
    q = _transactions_query()
    total = q.count()
    rows = q.offset((page - 1) * limit).limit(limit).all()
    return jsonify(success=True, items=[t.to_dict() for t in rows], total=total, page=page, limit=limit)


@admin_bp.route("/credits/transactions/export.csv")
@api_admin_required
def export_transactions():
    data = transactions_csv(_transactions_query().all())
    return send_file(io.BytesIO(data), mimetype="text/csv", as_attachment=True,
                     download_name="credit_transactions.csv")
