# tests/test_credits.py
from datetime import datetime, timedelta

import pytest

from notedraw_app.extensions import db
from notedraw_app.models import CreditTransaction, CreditType
from notedraw_app.services.credits import (
    add_credits, consume_credits, adjust_credits, get_user_credits,
    has_enough_credits, process_expired_credits, InsufficientCreditsError,
)


def test_add_and_consume_keep_balance_and_log(app, user_normal):
    uid = user_normal.id
    with app.app_context():
        assert get_user_credits(uid) == 0
        add_credits(uid, 30, CreditType.PURCHASE_PACKAGE, "pack")
        consume_credits(uid, 12, "usage")
        assert get_user_credits(uid) == 18
        assert has_enough_credits(uid, 18)
        assert not has_enough_credits(uid, 19)

        amounts = [t.amount for t in CreditTransaction.query.filter_by(user_id=uid)
                   .order_by(CreditTransaction.id).all()]
        assert amounts == [30, -12]


def test_non_positive_amounts_rejected(app, user_normal):
    with app.app_context():
        with pytest.raises(ValueError):
            add_credits(user_normal.id, 0, CreditType.ADMIN_ADD)
        with pytest.raises(ValueError):
            consume_credits(user_normal.id, -3)


def test_consume_more_than_balance_raises(app, user_normal):
    uid = user_normal.id
    with app.app_context():
        add_credits(uid, 5, CreditType.REDEMPTION)
        with pytest.raises(InsufficientCreditsError) as exc:
            consume_credits(uid, 6)
        assert exc.value.required == 6
        assert exc.value.available == 5
        assert get_user_credits(uid) == 5


def test_consumption_drains_expiring_grants_first(app, user_normal):
    uid = user_normal.id
    with app.app_context():
        permanent = add_credits(uid, 10, CreditType.REGISTER_GIFT)
        expiring = add_credits(uid, 10, CreditType.PURCHASE_PACKAGE, expire_days=5)
        consume_credits(uid, 4)
        db.session.refresh(permanent)
        db.session.refresh(expiring)
        assert expiring.remaining_amount == 6
        assert permanent.remaining_amount == 10


def test_expiry_debits_only_unused_part(app, user_normal):
    uid = user_normal.id
    with app.app_context():
        add_credits(uid, 10, CreditType.REGISTER_GIFT)
        grant = add_credits(uid, 10, CreditType.PURCHASE_PACKAGE, expire_days=1)
        consume_credits(uid, 4)

        processed = process_expired_credits(now=datetime.utcnow() + timedelta(days=2))
        assert processed >= 1
        assert get_user_credits(uid) == 10

        db.session.refresh(grant)
        assert grant.remaining_amount == 0
        assert grant.expiration_processed_at is not None
        expire_tx = CreditTransaction.query.filter_by(user_id=uid, type=CreditType.EXPIRE).one()
        assert expire_tx.amount == -6

        # segunda passada não debita de novo
        process_expired_credits(now=datetime.utcnow() + timedelta(days=3))
        assert get_user_credits(uid) == 10


def test_adjust_credits_admin(app, user_normal):
    uid = user_normal.id
    with app.app_context():
        assert adjust_credits(uid, 20, "bonus") == 20
        assert adjust_credits(uid, -5, "fix") == 15
        with pytest.raises(InsufficientCreditsError):
            adjust_credits(uid, -16, "too much")
        with pytest.raises(ValueError):
            adjust_credits(uid, 0)
        types = {t.type for t in CreditTransaction.query.filter_by(user_id=uid)}
        assert types == {CreditType.ADMIN_ADD, CreditType.ADMIN_DEDUCT}
