# notedraw_app/blueprints/admin/payments.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import io
from datetime import datetime

from flask import request, jsonify, send_file

from ..admin import admin_bp
from ...decorators import api_admin_required
from ...services.payments import query_payments, all_payments
from ...services.export import payments_csv


def _filters() -> dict:
    return dict(
        search=request.args.get("search") or None,
        status=request.args.get("status") or None,
        provider=request.args.get("provider") or None,
        ptype=request.args.get("type") or None,
        sort=request.args.get("sort") or "createdAt",
        desc=request.args.get("desc", "true").lower() != "false",
    )


@admin_bp.route("/payments")
@api_admin_required
def list_payments():
    page_index = max(request.args.get("page_index", 0, type=int), 0)
    page_size = request.args.get("page_size", 10, type=int)
    result = query_payments(page_index=page_index, page_size=page_size, **_filters())
    return jsonify(success=True, data=result)


@admin_bp.route("/payments/export.csv")
@api_admin_required
def export_payments():
    f = _filters()
    f.pop("sort")
    f.pop("desc")
    data = payments_csv(all_payments(**f))
    stamp = datetime.utcnow().strftime("%Y%m%d")
    return send_file(io.BytesIO(data), mimetype="text/csv", as_attachment=True,
                     download_name=f"payments_{stamp}.csv")
