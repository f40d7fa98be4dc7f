# notedraw_app/services/credits.py
# -*- coding: utf-8 -*-
"""Livro-razão de créditos.

Saldo por usuário (``user_credits``) + log append-only
(``credit_transactions``). Nenhuma view altera o saldo direto; tudo passa
por aqui.
"""
from __future__ import annotations
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import select

from ..extensions import db
from ..models.credit import UserCredit, CreditTransaction, CreditType


class InsufficientCreditsError(Exception):
    def __init__(self, required: int, available: int):
        super().__init__(f"Insufficient credits: required {required}, available {available}")
        self.required = required
        self.available = available


def _get_or_create_balance(user_id: int) -> UserCredit:
    row = db.session.execute(
        select(UserCredit).where(UserCredit.user_id == user_id)
    ).scalar_one_or_none()
    if row is None:
        row = UserCredit(user_id=user_id, current_credits=0)
        db.session.add(row)
        db.session.flush()
    return row


def get_user_credits(user_id: int) -> int:
    row = db.session.execute(
        select(UserCredit).where(UserCredit.user_id == user_id)
    ).scalar_one_or_none()
    return int(row.current_credits or 0) if row else 0


def has_enough_credits(user_id: int, required: int) -> bool:
    return get_user_credits(user_id) >= required


def add_credits(user_id: int, amount: int, type: str, description: str = "",
                payment_id: str | None = None, expire_days: int | None = None,
                commit: bool = True) -> CreditTransaction:
    if amount <= 0:
        raise ValueError("amount must be positive")
    bal = _get_or_create_balance(user_id)
    bal.current_credits = (bal.current_credits or 0) + amount
    tx = CreditTransaction(
        user_id=user_id, type=type, description=description, amount=amount,
        remaining_amount=amount, payment_id=payment_id,
        expiration_date=(datetime.utcnow() + timedelta(days=expire_days)) if expire_days else None,
    )
    db.session.add(tx)
    if commit:
        db.session.commit()
    current_app.logger.info("Credits +%s (%s) for user %s", amount, type, user_id)
    return tx


def _open_grants(user_id: int) -> list[CreditTransaction]:
    # vencem primeiro os que expiram antes; sem validade ficam por último
    return db.session.execute(
        select(CreditTransaction)
        .where(
            CreditTransaction.user_id == user_id,
            CreditTransaction.amount > 0,
            CreditTransaction.remaining_amount > 0,
            CreditTransaction.expiration_processed_at.is_(None),
        )
        .order_by(
            CreditTransaction.expiration_date.is_(None),
            CreditTransaction.expiration_date.asc(),
            CreditTransaction.created_at.asc(),
            CreditTransaction.id.asc(),
        )
    ).scalars().all()


def _debit(user_id: int, amount: int, type: str, description: str) -> CreditTransaction:
    bal = _get_or_create_balance(user_id)
    available = int(bal.current_credits or 0)
    if available < amount:
        raise InsufficientCreditsError(amount, available)

    left = amount
    for grant in _open_grants(user_id):
        if left <= 0:
            break
        take = min(grant.remaining_amount, left)
        grant.remaining_amount -= take
        left -= take

    bal.current_credits = available - amount
    tx = CreditTransaction(user_id=user_id, type=type, description=description, amount=-amount)
    db.session.add(tx)
    db.session.commit()
    return tx


def consume_credits(user_id: int, amount: int, description: str = "") -> CreditTransaction:
    if amount <= 0:
        raise ValueError("amount must be positive")
    tx = _debit(user_id, amount, CreditType.USAGE, description)
    current_app.logger.info("Credits -%s (usage) for user %s", amount, user_id)
    return tx


def adjust_credits(user_id: int, amount: int, description: str = "") -> int:
    """Ajuste manual do admin. Retorna o novo saldo."""
    if amount == 0:
        raise ValueError("amount must not be zero")
    current = get_user_credits(user_id)
    if current + amount < 0:
        raise InsufficientCreditsError(-amount, current)
    if amount > 0:
        add_credits(user_id, amount, CreditType.ADMIN_ADD, description or "Admin adjustment")
    else:
        _debit(user_id, -amount, CreditType.ADMIN_DEDUCT, description or "Admin adjustment")
    return get_user_credits(user_id)


def process_expired_credits(now: datetime | None = None) -> int:
    """Baixa o saldo restante das concessões vencidas. Retorna quantas foram processadas."""
    now = now or datetime.utcnow()
    grants = db.session.execute(
        select(CreditTransaction).where(
            CreditTransaction.amount > 0,
            CreditTransaction.expiration_date.is_not(None),
            CreditTransaction.expiration_date <= now,
            CreditTransaction.expiration_processed_at.is_(None),
        )
    ).scalars().all()

    processed = 0
    for grant in grants:
        remaining = int(grant.remaining_amount or 0)
        grant.expiration_processed_at = now
        processed += 1
        if remaining <= 0:
            continue
        bal = _get_or_create_balance(grant.user_id)
        deduct = min(remaining, int(bal.current_credits or 0))
        bal.current_credits = int(bal.current_credits or 0) - deduct
        grant.remaining_amount = 0
        if deduct <= 0:
            continue
        db.session.add(CreditTransaction(
            user_id=grant.user_id, type=CreditType.EXPIRE, amount=-deduct,
            description=f"Expired credits from transaction #{grant.id}",
        ))
    db.session.commit()
    return processed
