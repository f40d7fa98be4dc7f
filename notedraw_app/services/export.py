# notedraw_app/services/export.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import io

import pandas as pd

PAYMENT_COLUMNS = [
    "id", "userEmail", "type", "priceId", "status", "paid", "amountCents",
    "currency", "provider", "customerId", "createdAt",
]
TRANSACTION_COLUMNS = ["id", "userId", "type", "amount", "remainingAmount", "description", "paymentId", "createdAt"]


def rows_to_csv(rows: list[dict], columns: list[str]) -> bytes:
    df = pd.DataFrame(rows, columns=columns)
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    return buf.getvalue().encode("utf-8-sig")


def payments_csv(payments) -> bytes:
    return rows_to_csv([p.to_dict() for p in payments], PAYMENT_COLUMNS)


def transactions_csv(transactions) -> bytes:
    return rows_to_csv([t.to_dict() for t in transactions], TRANSACTION_COLUMNS)
