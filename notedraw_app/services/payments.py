# notedraw_app/services/payments.py
# -*- coding: utf-8 -*-
"""Reconciliação de pagamentos e consultas do painel admin."""
from __future__ import annotations
from datetime import datetime

from flask import current_app
from sqlalchemy import select, func, or_

from ..extensions import db
from ..models.payment import Payment
from ..models.user import User
from ..models.credit import CreditType
from .credits import add_credits
from .config_cache import get_config_json, get_credit_expiration_days


def _to_int(v, default: int = 0) -> int:
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return default


def find_payment_by_session(session_id: str) -> Payment | None:
    return db.session.execute(
        select(Payment).where(Payment.session_id == session_id)
    ).scalars().first()


def record_completed_checkout(session_id: str, metadata: dict, *, provider: str,
                              customer_id: str | None = None,
                              subscription_id: str | None = None,
                              amount_cents: int | None = None,
                              currency: str | None = None) -> Payment | None:
    """Marca o checkout como pago e concede os benefícios.

    Idempotente: se o pagamento já estava pago nada é concedido de novo.
    Sem ``userId`` no metadata não há a quem atribuir; retorna None.
    """
    metadata = metadata or {}
    user_id = _to_int(metadata.get("userId"), 0)
    if not user_id:
        current_app.logger.warning("Checkout %s completed without userId metadata", session_id)
        return None

    price_id = metadata.get("priceId") or "unknown"
    ptype = metadata.get("type") or "subscription"

    payment = db.session.get(Payment, session_id) or find_payment_by_session(session_id)
    already_paid = bool(payment and payment.paid)
    if payment is None:
        payment = Payment(id=session_id, user_id=user_id)
        db.session.add(payment)

    payment.session_id = session_id
    payment.price_id = price_id
    payment.type = ptype
    payment.scene = metadata.get("scene") or ("credits" if ptype == "credit_purchase" else "subscription")
    payment.customer_id = customer_id or payment.customer_id or ""
    payment.subscription_id = subscription_id or payment.subscription_id
    payment.provider = provider
    payment.status = "succeeded"
    payment.paid = True
    if amount_cents is not None:
        payment.amount_cents = amount_cents
    if currency:
        payment.currency = currency.upper()
    payment.updated_at = datetime.utcnow()

    if customer_id:
        user = db.session.get(User, user_id)
        if user and not user.customer_id:
            user.customer_id = customer_id

    if already_paid:
        db.session.commit()
        return payment

    if ptype == "credit_purchase":
        credits = _to_int(metadata.get("credits"), 0)
        if credits > 0:
            add_credits(
                user_id, credits, CreditType.PURCHASE_PACKAGE,
                description=f"Purchase credits via {provider.capitalize()}",
                payment_id=session_id, expire_days=get_credit_expiration_days(),
                commit=False,
            )
    elif ptype == "subscription" and price_id:
        per_price = get_config_json("pricing", "subscription_credits", {}) or {}
        credits = _to_int(per_price.get(price_id), 0)
        if credits > 0:
            add_credits(
                user_id, credits, CreditType.SUBSCRIPTION_RENEWAL,
                description=f"Subscription credits for {price_id}",
                payment_id=session_id, commit=False,
            )

    db.session.commit()
    current_app.logger.info("Payment %s recorded for user %s (%s)", session_id, user_id, ptype)
    return payment


def update_payment_status(session_or_sub_id: str, status: str, *, cancel_at_period_end: bool | None = None) -> bool:
    payment = db.session.execute(
        select(Payment).where(or_(
            Payment.id == session_or_sub_id,
            Payment.session_id == session_or_sub_id,
            Payment.subscription_id == session_or_sub_id,
        ))
    ).scalars().first()
    if not payment:
        return False
    payment.status = status
    if cancel_at_period_end is not None:
        payment.cancel_at_period_end = cancel_at_period_end
    db.session.commit()
    return True


def check_payment_completion(session_id: str) -> dict:
    """Diz se o checkout ``session_id`` já está pago.

    Caminho rápido: registro local pago. Caso contrário consulta o provedor,
    que grava o pagamento como efeito colateral, e relê o banco. Falha no
    provedor é logada e engolida: a resposta fica com o valor local anterior.
    """
    from ..payment import get_payment_provider

    try:
        payment = find_payment_by_session(session_id)
        if payment and payment.paid:
            return {"success": True, "isPaid": True}

        try:
            provider = get_payment_provider()
            provider.get_checkout_session(session_id)
        except Exception:
            current_app.logger.exception("Provider lookup failed for session %s", session_id)
            db.session.rollback()

        db.session.expire_all()
        payment = find_payment_by_session(session_id)
        return {"success": True, "isPaid": bool(payment and payment.paid)}
    except Exception:
        current_app.logger.exception("Failed to check payment completion")
        db.session.rollback()
        return {"success": False, "error": "Failed to check payment completion"}


# ---------------- Consultas do admin ----------------
SORT_COLUMNS = {
    "createdAt": Payment.created_at,
    "status": Payment.status,
    "amount": Payment.amount_cents,
    "provider": Payment.provider,
    "type": Payment.type,
}


def _payments_query(search: str | None = None, status: str | None = None,
                    provider: str | None = None, ptype: str | None = None):
    q = select(Payment).join(User, User.id == Payment.user_id, isouter=True)
    if search:
        like = f"%{search.strip().lower()}%"
        q = q.where(or_(
            func.lower(Payment.id).like(like),
            func.lower(Payment.customer_id).like(like),
            func.lower(Payment.invoice_id).like(like),
            func.lower(User.email).like(like),
        ))
    if status:
        q = q.where(Payment.status == status)
    if provider:
        q = q.where(Payment.provider == provider)
    if ptype:
        q = q.where(Payment.type == ptype)
    return q


def query_payments(page_index: int = 0, page_size: int = 10, search: str | None = None,
                   status: str | None = None, provider: str | None = None, ptype: str | None = None,
                   sort: str = "createdAt", desc: bool = True) -> dict:
    page_index = max(int(page_index or 0), 0)
    page_size = min(max(int(page_size or 10), 1), 100)

    base = _payments_query(search, status, provider, ptype)
    total = db.session.execute(select(func.count()).select_from(base.subquery())).scalar() or 0

    col = SORT_COLUMNS.get(sort, Payment.created_at)
    rows = db.session.execute(
        base.order_by(col.desc() if desc else col.asc(), Payment.id.asc())
        .offset(page_index * page_size).limit(page_size)
    ).scalars().all()
    return {"items": [p.to_dict() for p in rows], "total": int(total)}


def all_payments(**filters) -> list[Payment]:
    q = _payments_query(**filters).order_by(Payment.created_at.desc())
    return db.session.execute(q).scalars().all()
